from __future__ import annotations

import allure

from lfs_locks.parser import parse_lock_line, parse_lock_lines

pytestmark = [
    allure.epic("Lock Cache"),
    allure.feature("Locks Output Parsing"),
]


def test_parse_bare_user_line() -> None:
    record = parse_lock_line("Assets/foo.png\tmikerochip\tID:1436853")

    assert record is not None
    assert record.path == "Assets/foo.png"
    assert record.user == "mikerochip"
    assert record.id == "1436853"
    assert record.is_pending is False


def test_parse_display_name_keeps_address_local_part() -> None:
    record = parse_lock_line("Assets/foobar.png\tFoo Bar (fbar@example.com)\tID:1436853")

    assert record is not None
    assert record.path == "Assets/foobar.png"
    assert record.user == "fbar"
    assert record.id == "1436853"


def test_parse_trims_field_whitespace() -> None:
    record = parse_lock_line("  Assets/My Scene.unity \t  mikerochip \t ID:42  ")

    assert record is not None
    assert record.path == "Assets/My Scene.unity"
    assert record.user == "mikerochip"
    assert record.id == "42"


def test_parse_rejects_lines_without_lock_shape() -> None:
    assert parse_lock_line("") is None
    assert parse_lock_line("Git LFS: (2 of 2 files) 1.2 KB") is None
    assert parse_lock_line("Assets/foo.png\tmikerochip") is None
    assert parse_lock_line("Assets/foo.png\tmikerochip\t1436853") is None
    assert parse_lock_line("Assets/foo.png\tmikerochip\tID:") is None
    assert parse_lock_line("\tmikerochip\tID:1") is None


def test_parse_lock_lines_skips_noise_and_resolves_asset_ids() -> None:
    guids = {"Assets/a.png": "abc123"}

    records = parse_lock_lines(
        [
            "Assets/a.png\talice\tID:1",
            "warning: something unrelated",
            "Assets/b.png\tBob B (bob@example.com)\tID:2",
        ],
        lambda path: guids.get(path, ""),
    )

    assert [(record.path, record.user, record.asset_guid) for record in records] == [
        ("Assets/a.png", "alice", "abc123"),
        ("Assets/b.png", "bob", ""),
    ]
