"""Tests for per-test fixture chains."""

from nested_fixtures import (
    ChainExecutor,
    ClassIntrospector,
    FixtureChain,
    NestedFixture,
    NestedSuite,
    before,
    build_suite_tree,
    ignore,
    test,
)
from tests.fixtures.suites import Level2Nesting

CREATED: list[object] = []
SEEN: list[tuple[str, int, int]] = []


class Counting:
    def __init__(self):
        self.counter = 0
        CREATED.append(self)

    @before
    def bump(self):
        self.counter += 1

    class Nested(NestedFixture):
        def __init__(self, parent):
            super().__init__(parent)
            CREATED.append(self)

        @before
        def bump(self):
            self.parent.counter += 1

        @test
        def first(self):
            SEEN.append(("first", id(self), self.parent.counter))

        @test
        def second(self):
            SEEN.append(("second", id(self), self.parent.counter))


class WithIgnored:
    @test
    def runs(self):
        pass

    @ignore
    @test
    def skipped(self):
        raise AssertionError("never runs")


class TestFixtureChain:
    """Tests for FixtureChain."""

    def test_chain_links_each_level_to_its_parent(self) -> None:
        """The root is built with no arguments, nested levels from their parent."""
        root, _, _ = build_suite_tree(Level2Nesting)
        path = (root, root.children[0])

        chain = FixtureChain.create(path, ClassIntrospector())

        assert chain.depth == 1
        assert isinstance(chain.links[0].fixture, Level2Nesting)
        assert isinstance(chain.leaf, Level2Nesting.Foo)
        assert chain.leaf.parent is chain.links[0].fixture

    def test_chains_are_never_shared(self) -> None:
        """Creating two chains for the same path creates new instances."""
        root, _, _ = build_suite_tree(Level2Nesting)
        path = (root, root.children[0])

        one = FixtureChain.create(path, ClassIntrospector())
        two = FixtureChain.create(path, ClassIntrospector())

        assert one.leaf is not two.leaf
        assert one.links[0].fixture is not two.links[0].fixture


class TestChainExecutor:
    """Tests for ChainExecutor."""

    def setup_method(self) -> None:
        CREATED.clear()
        SEEN.clear()

    def test_siblings_get_fresh_instances(self, notifier, recorder) -> None:
        """Sibling tests never share a fixture at any level."""
        NestedSuite(Counting).run(notifier)

        assert recorder.was_successful
        assert len(CREATED) == 4
        assert len({id(obj) for obj in CREATED}) == 4
        # Each test sees only its own chain's counter.
        assert [(name, counter) for name, _, counter in SEEN] == [("first", 2), ("second", 2)]

    def test_events_per_test(self, notifier, recorder) -> None:
        """Executed tests start then finish; ignored ones are only ignored."""
        NestedSuite(WithIgnored).run(notifier)

        assert recorder.events == [
            ("started", "runs"),
            ("finished", "runs"),
            ("ignored", "skipped"),
        ]
        assert recorder.run_count == 1
        assert recorder.ignore_count == 1

    def test_execute_single_test(self, notifier, recorder) -> None:
        """One test runs with its whole chain."""
        root, _, _ = build_suite_tree(Counting)
        executor = ChainExecutor(root, ClassIntrospector())
        nested = root.children[0]

        executor.execute((root, nested), nested.tests[1], notifier)

        assert recorder.events == [("started", "second"), ("finished", "second")]
        assert [name for name, _, _ in SEEN] == ["second"]
