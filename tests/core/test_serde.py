from tapkit.core.serde import json_dumps_canonical, json_loads


def test_json_dumps_canonical_sorted_and_ascii_policy() -> None:
    obj1 = {"b": 2, "a": 1, "nested": {"y": 2, "x": 1}, "emoji": "🙂"}
    obj2 = {"nested": {"x": 1, "y": 2}, "a": 1, "emoji": "🙂", "b": 2}
    s1 = json_dumps_canonical(obj1)
    s2 = json_dumps_canonical(obj2)
    assert s1 == s2  # order-insensitive; keys sorted canonically
    # ensure_ascii=False keeps unicode as-is (no escape sequences)
    assert "🙂" in s1


def test_canonical_json_is_single_line() -> None:
    s = json_dumps_canonical({"text": "line1\nline2", "items": [1, 2]})
    assert "\n" not in s
    assert json_loads(s) == {"text": "line1\nline2", "items": [1, 2]}


def test_serde_roundtrip() -> None:
    obj = {"k": [1, 2, 3], "m": {"n": 4}, "none": None, "flag": True}
    assert json_loads(json_dumps_canonical(obj)) == obj
