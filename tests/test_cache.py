#!/usr/bin/env python3
"""
Cache and configuration tests
"""

import time
from unittest.mock import patch

import pytest

from legislation_mcp.cache import CacheManager, LRUCache
from legislation_mcp.config_loader import ConfigLoader


class TestLRUCache:

    def test_put_and_get(self):
        cache = LRUCache(max_size=2, ttl=60)
        cache.put("a", 1)
        assert cache.get("a") == 1
        assert cache.get("missing") is None

    def test_evicts_least_recently_used(self):
        cache = LRUCache(max_size=2, ttl=60)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert cache.size() == 2

    def test_ttl_expiry(self):
        cache = LRUCache(max_size=10, ttl=1)
        cache.put("a", 1)

        with patch("legislation_mcp.cache.time.time", return_value=time.time() + 5):
            assert cache.get("a") is None
        assert cache.size() == 0

    def test_cleanup_expired(self):
        cache = LRUCache(max_size=10, ttl=1)
        cache.put("a", 1)

        with patch("legislation_mcp.cache.time.time", return_value=time.time() + 5):
            cache.cleanup_expired()
        assert cache.size() == 0

    def test_stats_count_hits_and_misses(self):
        cache = LRUCache(max_size=5, ttl=30)
        cache.put("a", 1)
        cache.get("a")
        cache.get("a")
        cache.get("b")

        assert cache.stats() == {"size": 1, "max_size": 5, "ttl_seconds": 30, "hits": 2, "misses": 1}

    def test_expired_get_counts_as_miss(self):
        cache = LRUCache(max_size=5, ttl=1)
        cache.put("a", 1)

        with patch("legislation_mcp.cache.time.time", return_value=time.time() + 5):
            assert cache.get("a") is None
        assert cache.stats()["misses"] == 1
        assert cache.stats()["hits"] == 0


class TestCacheManager:

    @pytest.fixture
    def manager(self):
        return CacheManager({
            "document_cache": {"max_size": 3, "ttl": 60},
            "search_cache": {"max_size": 4, "ttl": 30},
            "memory_limit_mb": 100000,
        })

    def test_settings_applied(self, manager):
        assert manager.document_cache.max_size == 3
        assert manager.search_cache.ttl == 30

    def test_clear_one_cache(self, manager):
        manager.document_cache.put("d", "x")
        manager.search_cache.put("s", "y")

        manager.clear("search")
        assert manager.document_cache.size() == 1
        assert manager.search_cache.size() == 0

    def test_clear_all(self, manager):
        manager.document_cache.put("d", "x")
        manager.search_cache.put("s", "y")

        manager.clear()
        assert manager.document_cache.size() == 0
        assert manager.search_cache.size() == 0

    def test_clear_unknown(self, manager):
        with pytest.raises(ValueError):
            manager.clear("prompt")

    def test_memory_pressure_clears_everything(self, manager):
        manager.document_cache.put("d", "x")
        with patch.object(manager.memory_monitor, "is_memory_limit_exceeded", return_value=True):
            assert manager.cleanup_if_needed() is True
        assert manager.document_cache.size() == 0

    def test_cleanup_within_limit_drops_only_expired(self, manager):
        manager.document_cache.put("d", "x")
        manager.search_cache.put("s", "y")

        with patch("legislation_mcp.cache.time.time", return_value=time.time() + 45):
            assert manager.cleanup_if_needed() is False
        assert manager.document_cache.size() == 1
        assert manager.search_cache.size() == 0

    def test_store_skipped_under_memory_pressure(self, manager):
        assert manager.store(manager.document_cache, "a", "x") is True
        with patch.object(manager.memory_monitor, "is_memory_limit_exceeded", return_value=True):
            assert manager.store(manager.document_cache, "b", "y") is False
        assert manager.document_cache.size() == 0

    def test_stats(self, manager):
        stats = manager.stats()

        assert set(stats["cache_statistics"]) == {"document_cache", "search_cache"}
        assert stats["memory_monitoring"]["max_memory_mb"] == 100000
        assert stats["memory_monitoring"]["current_usage_mb"] > 0
        assert stats["memory_monitoring"]["memory_limit_exceeded"] is False
        assert stats["cache_statistics"]["search_cache"]["max_size"] == 4
        assert stats["cache_statistics"]["search_cache"]["hits"] == 0


class TestConfigLoader:

    def test_bundled_config(self, monkeypatch):
        monkeypatch.delenv("LEGISLATION_CONFIG_PATH", raising=False)
        loader = ConfigLoader()

        assert loader.short_type("UnitedKingdomPublicGeneralAct") == "ukpga"
        assert loader.short_type("ScottishStatutoryInstrument") == "ssi"
        assert loader.short_type("NoSuchType") == ""
        assert loader.type_descriptions["ukpga"] == "UK Public General Acts"

    def test_missing_file_falls_back(self, monkeypatch, tmp_path):
        monkeypatch.delenv("LEGISLATION_CONFIG_PATH", raising=False)
        loader = ConfigLoader(str(tmp_path / "absent.yaml"))

        assert loader.short_type("WelshParliamentAct") == "asc"
        assert loader.cache_settings["document_cache"]["max_size"] == 100

    def test_custom_file_and_reload(self, monkeypatch, tmp_path):
        config_file = tmp_path / "legislation.yaml"
        config_file.write_text("document_types:\n  CustomType: cust\n", encoding="utf-8")
        monkeypatch.setenv("LEGISLATION_CONFIG_PATH", str(config_file))

        loader = ConfigLoader()
        assert loader.short_type("CustomType") == "cust"

        config_file.write_text("document_types:\n  CustomType: changed\n", encoding="utf-8")
        assert loader.short_type("CustomType") == "cust"
        loader.reload_config()
        assert loader.short_type("CustomType") == "changed"

    def test_invalid_yaml_falls_back(self, monkeypatch, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("document_types: [unclosed\n", encoding="utf-8")
        monkeypatch.delenv("LEGISLATION_CONFIG_PATH", raising=False)

        loader = ConfigLoader(str(config_file))
        assert loader.short_type("UnitedKingdomPublicGeneralAct") == "ukpga"
