"""Tests for package exports."""


def test_public_exports() -> None:
    """Test that the public API is importable from the package root."""
    import readthrough
    from readthrough import (
        AsyncCache,
        AsyncCacheManager,
        Cache,
        CacheConfig,
        CacheManager,
        ParameterizedKey,
        SingletonKey,
        StorageMode,
        parse_duration,
    )

    assert Cache is not None
    assert AsyncCache is not None
    assert CacheManager is not None
    assert AsyncCacheManager is not None
    assert CacheConfig is not None
    assert ParameterizedKey is not None
    assert SingletonKey is not None
    assert StorageMode is not None
    assert parse_duration is not None
    assert set(readthrough.__all__) <= set(dir(readthrough))
