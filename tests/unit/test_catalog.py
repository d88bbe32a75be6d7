"""Unit tests for the voice catalog and seed loading."""

import json
from pathlib import Path

import pytest

from config.voice_loader import default_avatar_url, load_seed_voices
from core.catalog import VoiceCatalog
from core.exceptions import ProfileNotFound
from core.models import VoiceGender
from core.persistence.database import Database


class TestLoadSeedVoices:
    """Tests for the bundled seed list and loader."""

    def test_bundled_seeds(self) -> None:
        """Test that the bundled list loads with avatars filled in."""
        seeds = load_seed_voices()

        assert len(seeds) == 7
        assert {seed.gender for seed in seeds} == set(VoiceGender)
        assert all(seed.avatar_url for seed in seeds)
        assert all(seed.tts_voice_id for seed in seeds)

    def test_explicit_avatar_kept(self, tmp_path: Path) -> None:
        seed_file = tmp_path / "voices.json"
        seed_file.write_text(
            json.dumps(
                [
                    {
                        "name": "Nora",
                        "accent": "Irish",
                        "language_code": "en-IE",
                        "gender": "female",
                        "voice_type": "casual",
                        "tts_voice_id": "en-IE-Standard-A",
                        "avatar_url": "https://example.com/nora.png",
                    }
                ]
            )
        )
        (seed,) = load_seed_voices(seed_file)
        assert seed.avatar_url == "https://example.com/nora.png"

    def test_default_avatar_url_quotes_name(self) -> None:
        assert default_avatar_url("Alex - US Young") == (
            "https://ui-avatars.com/api/?name=Alex%20-%20US%20Young&background=random"
        )

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_seed_voices(tmp_path / "nope.json")

    def test_not_a_list(self, tmp_path: Path) -> None:
        seed_file = tmp_path / "voices.json"
        seed_file.write_text('{"name": "Alex"}')
        with pytest.raises(ValueError, match="JSON list"):
            load_seed_voices(seed_file)

    def test_invalid_entry(self, tmp_path: Path) -> None:
        seed_file = tmp_path / "voices.json"
        seed_file.write_text('[{"name": "Alex"}]')
        with pytest.raises(ValueError, match="Invalid voice seed #0"):
            load_seed_voices(seed_file)


class TestVoiceCatalog:
    """Tests for VoiceCatalog."""

    def test_list_profiles_ordered_by_id(self, catalog: VoiceCatalog) -> None:
        profiles = catalog.list_profiles()

        assert len(profiles) == 7
        assert [p.id for p in profiles] == sorted(p.id for p in profiles)
        assert profiles[0].name.startswith("Alex")

    def test_get_profile(self, catalog: VoiceCatalog) -> None:
        first = catalog.list_profiles()[0]
        assert catalog.get_profile(first.id) == first

    def test_get_unknown_profile(self, catalog: VoiceCatalog) -> None:
        with pytest.raises(ProfileNotFound) as exc_info:
            catalog.get_profile(9999)
        assert exc_info.value.profile_id == 9999

    def test_seed_is_idempotent(self, catalog: VoiceCatalog) -> None:
        """Test that seeding a populated catalog inserts nothing."""
        assert catalog.seed(load_seed_voices()) == 0
        assert len(catalog.list_profiles()) == 7

    def test_empty_catalog(self, database: Database) -> None:
        assert VoiceCatalog(database).list_profiles() == []

    def test_unreachable_database_lists_nothing(self, tmp_path: Path) -> None:
        """Test that listing degrades to an empty list."""
        broken = Database(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
        assert VoiceCatalog(broken).list_profiles() == []

    @pytest.mark.parametrize("profile_id", [0, -1, 2**63])
    def test_out_of_range_profile_id(self, catalog: VoiceCatalog, profile_id: int) -> None:
        """Test that ids no INTEGER column can hold are simply not found."""
        with pytest.raises(ProfileNotFound):
            catalog.get_profile(profile_id)
