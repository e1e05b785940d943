from src.edu_center.edu_center.users.suggestions import suggest_usernames


class ScriptedRandom:
    def __init__(self, *values):
        self._values = iter(values)

    def randint(self, a, b):
        return next(self._values)


def test_probes_fixed_suffixes_in_order():
    taken = {"ali"}

    result = suggest_usernames("ali", taken.__contains__, year=2024, rng=ScriptedRandom(17, 5))

    assert result == ["ali17", "ali2024", "aliuz"]


def test_skips_taken_candidates():
    taken = {"ali", "ali17", "ali2024"}

    result = suggest_usernames("ali", taken.__contains__, year=2024, rng=ScriptedRandom(17, 5))

    assert result == ["aliuz", "alipro", "ali5"]


def test_fills_shortfall_with_random_suffixes_without_duplicates():
    taken = {"ali", "ali17", "ali2024", "aliuz", "alipro", "ali5", "ali4321"}

    result = suggest_usernames(
        "ali",
        taken.__contains__,
        year=2024,
        rng=ScriptedRandom(17, 5, 4321, 88, 88, 99, 100),
    )

    assert result == ["ali88", "ali99", "ali100"]
    assert not set(result) & taken


def test_always_three_distinct_free_names():
    taken = {"ali"}

    result = suggest_usernames("ali", taken.__contains__, year=2024)

    assert len(result) == 3
    assert len(set(result)) == 3
    assert all(r.startswith("ali") and r not in taken for r in result)
