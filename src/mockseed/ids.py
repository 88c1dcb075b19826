"""Identifier field detection and value generation."""

from __future__ import annotations

from collections.abc import Iterable

from mockseed.config import IdFormat, MockIdConfig
from mockseed.rng import SeededRandom

DEFAULT_ID_FIELD = "id"


def is_id_field(field_name: str, config: MockIdConfig | None = None) -> bool:
    """Check whether a field name looks like an identifier."""
    config = config or MockIdConfig()
    if field_name in config.field_patterns:
        return True
    if any(field_name.endswith(suffix) for suffix in config.field_suffixes):
        return True
    return field_name in config.field_overrides


def detect_id_field(field_names: Iterable[str], config: MockIdConfig | None = None) -> str:
    """Pick the identifier field of a record.

    Exact pattern matches win over suffix matches; within each group the
    configured order decides. Falls back to ``id`` when nothing matches.
    """
    config = config or MockIdConfig()
    names = list(field_names)
    for pattern in config.field_patterns:
        if pattern in names:
            return pattern
    for suffix in config.field_suffixes:
        for name in names:
            if name.endswith(suffix) and name != suffix:
                return name
    return DEFAULT_ID_FIELD


def generate_by_format(
    fmt: IdFormat, index: int, rng: SeededRandom, prefix: str | None = None
) -> str | int:
    """Render one identifier in the given format."""
    fmt = IdFormat(fmt)
    if fmt is IdFormat.SEQUENTIAL:
        return f"{'id-' if prefix is None else prefix}{index + 1}"
    if fmt is IdFormat.NUMERIC:
        return index + 1
    if fmt is IdFormat.ULID:
        return rng.ulid()
    if fmt is IdFormat.NANOID:
        return rng.nanoid()
    if fmt is IdFormat.HASH:
        return rng.hash_id()
    return rng.uuid()


def generate_id_value(
    field_name: str,
    index: int,
    seed: str | int,
    config: MockIdConfig | None = None,
) -> str | int:
    """Generate the identifier for the item at ``index``.

    Args:
        field_name: Identifier field the value is for
        index: Zero-based item position
        seed: Collection seed
        config: Identifier settings (defaults to ``MockIdConfig()``)

    Returns:
        The identifier. ``numeric`` format yields an int, everything else a str.
    """
    config = config or MockIdConfig()
    rng = SeededRandom(f"{seed}-{field_name}-{index}")
    override = config.override_for(field_name)
    if override is not None:
        if override.fixed_value is not None:
            return override.fixed_value
        return generate_by_format(
            override.format or config.format,
            index,
            rng,
            override.prefix if override.prefix is not None else config.prefix,
        )
    return generate_by_format(config.format, index, rng, config.prefix)
