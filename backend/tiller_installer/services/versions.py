import logging

import semver

logger = logging.getLogger(__name__)


def image_version(image: str) -> str | None:
    _, sep, tag = image.rpartition(":")
    if not sep:
        return None
    return tag


def parse_tag(tag: str) -> semver.Version:
    # build metadata carries no precedence
    return semver.Version.parse(tag.removeprefix("v"), optional_minor_and_patch=True).replace(build=None)


def is_newer_version(existing_image: str, new_image: str) -> bool:
    """Return True when ``new_image`` carries a strictly greater tag than ``existing_image``.

    Fails open: a reference without a tag, or with a tag that is not a
    semantic version, is treated as newer so the upgrade goes ahead.
    """
    existing_tag = image_version(existing_image)
    new_tag = image_version(new_image)
    if existing_tag is None or new_tag is None:
        return True

    try:
        return parse_tag(new_tag) > parse_tag(existing_tag)
    except ValueError:
        logger.warning(f"Could not compare image tags '{existing_tag}' and '{new_tag}', treating as newer")
        return True
