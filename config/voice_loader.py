"""Voice seed loading utility for reading the catalog seed list from disk."""

import json
import logging
from pathlib import Path
from urllib.parse import quote

from pydantic import ValidationError

from core.models import VoiceSeed

logger = logging.getLogger(__name__)

# Base directory for voice seed files
_VOICES_DIR = Path(__file__).parent / "voices"

DEFAULT_SEED_FILE = "seed_voices.json"

_AVATAR_URL_TEMPLATE = "https://ui-avatars.com/api/?name={name}&background=random"


def default_avatar_url(name: str) -> str:
    """Build a generated avatar URL for a profile without one.

    Args:
        name: Profile display name.

    Returns:
        Avatar image URL.
    """
    return _AVATAR_URL_TEMPLATE.format(name=quote(name))


def load_seed_voices(path: str | Path | None = None) -> list[VoiceSeed]:
    """Load voice seeds from a JSON file.

    Args:
        path: Seed file path. Defaults to the bundled seed list.

    Returns:
        Validated seeds, with avatar URLs filled in.

    Raises:
        FileNotFoundError: If the seed file does not exist.
        ValueError: If the file is not a JSON list of valid seeds.
    """
    seed_path = Path(path) if path else _VOICES_DIR / DEFAULT_SEED_FILE

    if not seed_path.exists():
        raise FileNotFoundError(
            f"Voice seed file not found: {seed_path}. "
            f"Expected location: {_VOICES_DIR}/"
        )

    try:
        raw = json.loads(seed_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Voice seed file {seed_path} is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise ValueError(f"Voice seed file {seed_path} must contain a JSON list")

    seeds: list[VoiceSeed] = []
    for index, entry in enumerate(raw):
        try:
            seed = VoiceSeed.model_validate(entry)
        except ValidationError as e:
            raise ValueError(f"Invalid voice seed #{index} in {seed_path}: {e}") from e
        if not seed.avatar_url:
            seed = seed.model_copy(update={"avatar_url": default_avatar_url(seed.name)})
        seeds.append(seed)

    logger.debug("Loaded %d voice seeds from %s", len(seeds), seed_path)
    return seeds
