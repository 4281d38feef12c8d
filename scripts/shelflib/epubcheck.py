"""
EPUB validation via epubcheck.

Locates epubcheck (env var, PATH, or ~/), runs it, and parses the
output summary. Validation only reports; it never fails a build.
"""

import logging
import os
import re
import shutil
import subprocess

logger = logging.getLogger(__name__)

SUMMARY = re.compile(r"Messages:\s*(\d+)\s*fatal.*?(\d+)\s*error.*?(\d+)\s*warn")


def find_epubcheck():
    """
    Locate epubcheck. Checks in order:
        1. EPUBCHECK_JAR environment variable
        2. epubcheck command on PATH (brew/apt install)
        3. ~/epubcheck*/epubcheck.jar

    Returns: (mode, path) where mode is 'jar' or 'cmd', or (None, None).
    """
    env_jar = os.environ.get("EPUBCHECK_JAR")
    if env_jar and os.path.exists(env_jar):
        return ("jar", env_jar)

    if shutil.which("epubcheck"):
        return ("cmd", "epubcheck")

    home = os.path.expanduser("~")
    if os.path.isdir(home):
        for entry in sorted(os.listdir(home), reverse=True):
            if entry.startswith("epubcheck"):
                jar = os.path.join(home, entry, "epubcheck.jar")
                if os.path.exists(jar):
                    return ("jar", jar)

    return (None, None)


def parse_summary(output):
    """(fatals, errors, warnings) from epubcheck output, or None."""
    match = SUMMARY.search(output)
    if not match:
        return None
    return tuple(int(n) for n in match.groups())


def validate_epub(epub_path):
    """
    Run epubcheck on an epub file.

    Returns:
        True if valid, False if errors, None if epubcheck unavailable.
    """
    mode, path = find_epubcheck()

    if mode is None:
        logger.info("Skipping validation of %s: epubcheck not found", epub_path)
        return None

    cmd = ["java", "-jar", path, epub_path] if mode == "jar" else [path, epub_path]
    logger.debug("Validating %s with epubcheck", epub_path)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("Could not run epubcheck (java not found?)")
        return None

    output = result.stdout + result.stderr
    counts = parse_summary(output)

    if counts:
        fatals, errors, warnings = counts
        if fatals == 0 and errors == 0 and warnings == 0:
            logger.info("epubcheck: %s is valid", epub_path)
        elif fatals == 0 and errors == 0:
            logger.info("epubcheck: %s is valid with %d warning(s)", epub_path, warnings)
        else:
            logger.warning(
                "epubcheck: %s has %d fatal, %d error(s), %d warning(s)",
                epub_path, fatals, errors, warnings,
            )
    elif result.returncode == 0:
        logger.info("epubcheck: %s is valid", epub_path)
    else:
        logger.warning("epubcheck: failed on %s (exit code %d)", epub_path, result.returncode)

    for line in output.splitlines():
        if line.startswith(("ERROR", "FATAL")):
            logger.warning("  %s", line)
        elif line.startswith("WARNING"):
            logger.debug("  %s", line)

    return result.returncode == 0
