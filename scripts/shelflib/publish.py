"""
Manifest publication.

With a templates directory, every file below it is rendered through
Jinja2 against the manifest and written to the same relative path under
the destination. Without one, the manifest is written as
<destination>/manifest.json.
"""

import json
import logging
import os

import jinja2

from shelflib.errors import PublishError

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


def make_dirs(path):
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise PublishError(f"Unable to create {path}: {e}", path=path) from e


def write_text(path, text):
    make_dirs(os.path.dirname(path) or ".")
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise PublishError(f"Unable to write {path}: {e}", path=path) from e


def write_manifest(manifest, destination_dir):
    path = os.path.join(destination_dir, MANIFEST_FILE)
    text = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n"
    write_text(path, text)
    logger.info("Wrote %s", path)
    return path


def template_environment(templates_dir):
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(templates_dir, followlinks=True),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def iter_templates(templates_dir, destination_dir):
    """
    Relative paths of every file below templates_dir, links followed.

    Every directory, empty or not, is recreated under destination_dir.
    """
    for root, dirs, files in os.walk(templates_dir, followlinks=True):
        dirs.sort()
        for name in dirs:
            rel = os.path.relpath(os.path.join(root, name), templates_dir)
            make_dirs(os.path.join(destination_dir, rel))
        for name in sorted(files):
            yield os.path.relpath(os.path.join(root, name), templates_dir)


def render_templates(manifest, templates_dir, destination_dir):
    if not os.path.isdir(templates_dir):
        raise PublishError(
            f"Templates directory {templates_dir} does not exist", path=templates_dir
        )

    make_dirs(destination_dir)
    env = template_environment(templates_dir)
    data = manifest.to_dict()
    context = dict(data, manifest=data)

    written = []
    for rel in iter_templates(templates_dir, destination_dir):
        # Jinja2 template names always use forward slashes
        name = rel.replace(os.sep, "/")
        try:
            text = env.get_template(name).render(context)
        except jinja2.TemplateError as e:
            raise PublishError(f"Failed to render template {rel}: {e}", path=rel) from e
        except (OSError, UnicodeDecodeError) as e:
            raise PublishError(f"Unable to read template {rel}: {e}", path=rel) from e

        out = os.path.join(destination_dir, rel)
        write_text(out, text)
        logger.debug("Rendered %s -> %s", rel, out)
        written.append(out)

    logger.info("Rendered %d template(s) into %s", len(written), destination_dir)
    return written


def publish(manifest, config):
    """Deliver the manifest. Returns the paths written. Raises PublishError."""
    if config.templates_dir:
        return render_templates(manifest, config.templates_dir, config.destination_dir)
    return [write_manifest(manifest, config.destination_dir)]
