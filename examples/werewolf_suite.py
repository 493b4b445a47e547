#!/usr/bin/env python3
"""
Werewolf Suite Example

Demonstrates BDD-style nested suites: each nested class is a "Given",
its befores are the "When", and its tests are the "Then".

Run it directly:
    uv run python examples/werewolf_suite.py

Or through the CLI:
    nested-fixtures run --rootdir examples werewolf_suite:WerewolfTest -v
    nested-fixtures describe --rootdir examples werewolf_suite:WerewolfTest
"""

from nested_fixtures import (
    NestedFixture,
    TextListener,
    after,
    before,
    ignore,
    rule,
    run_suites,
    test,
)


class WerewolfTest:
    @before
    def enter_the_woods(self):
        self.sounds: list[str] = []
        self.silver_bullets = 0

    @after
    def leave_the_woods(self):
        self.sounds.clear()

    @rule
    def lantern(self):
        print("  (lantern on)")
        try:
            yield
        finally:
            print("  (lantern off)")

    class Given_the_moon_is_full(NestedFixture):
        @before
        def when_you_walk_in_the_woods(self):
            self.parent.sounds.append("howl")

        @test
        def then_you_can_hear_werewolves_howling(self):
            assert "howl" in self.parent.sounds

        @test
        def then_you_wish_you_had_a_silver_bullet(self):
            assert self.parent.silver_bullets == 0

    class Given_the_moon_is_not_full(NestedFixture):
        @before
        def when_you_walk_in_the_woods(self):
            self.parent.sounds.append("owl")

        @test
        def then_you_do_not_hear_any_werewolves(self):
            assert "howl" not in self.parent.sounds

        @ignore("Fear is not measurable yet")
        @test
        def then_you_are_not_afraid(self):
            pass


if __name__ == "__main__":
    result = run_suites(WerewolfTest, listeners=[TextListener(verbose=True)])
    raise SystemExit(0 if result.was_successful else 1)
