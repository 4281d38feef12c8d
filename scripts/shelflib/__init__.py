"""
shelflib — build a bookshelf of EPUBs from book repositories.

Public API:
    from shelflib.config import ConfigBuilder, ShelfConfig, load_config
    from shelflib.repo import RepoSync, sync_repo
    from shelflib.builders import build_book
    from shelflib.shelf import run
    from shelflib.publish import publish
"""
