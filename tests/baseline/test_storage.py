"""Tests for pairkit.engine.storage — persisted deep-link reference."""
import diskcache
import pytest

from pairkit.engine.storage import DEEPLINK_KEY, DeepLinkReference, DeepLinkStorage

RAINBOW = DeepLinkReference(name="Rainbow", href="rainbow://")


@pytest.fixture
def disk(tmp_path):
    cache = diskcache.Cache(str(tmp_path / "cache"))
    yield cache
    cache.close()


class TestDeepLinkStorage:
    def test_roundtrip(self, deeplinks):
        deeplinks.setDeepLinkWallet(RAINBOW)
        assert deeplinks.getDeepLinkWallet() == RAINBOW

    def test_missing_is_none(self, deeplinks):
        assert deeplinks.getDeepLinkWallet() is None

    def test_remove(self, deeplinks):
        deeplinks.setDeepLinkWallet(RAINBOW)
        deeplinks.removeDeepLinkWallet()
        assert deeplinks.getDeepLinkWallet() is None

    def test_remove_missing_is_fine(self, deeplinks):
        deeplinks.removeDeepLinkWallet()
        deeplinks.removeDeepLinkWallet()
        assert DEEPLINK_KEY not in deeplinks.cache


class TestDiskPersistence:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "cache")
        first = DeepLinkStorage(diskcache.Cache(path))
        first.setDeepLinkWallet(RAINBOW)
        first.close()

        second = DeepLinkStorage(diskcache.Cache(path))
        assert second.getDeepLinkWallet() == RAINBOW
        second.close()

    def test_remove_on_disk(self, disk):
        storage = DeepLinkStorage(disk)
        storage.setDeepLinkWallet(RAINBOW)
        storage.removeDeepLinkWallet()
        assert DEEPLINK_KEY not in disk
