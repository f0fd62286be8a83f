"""Tests for building the project/section/task hierarchy."""

from todoline.core.models import Project, Section, Task
from todoline.core.tree import UNASSIGNED_NAME, build_tree, count_tasks


def _by_id(items):
    return {item.id: item for item in items}


def _names(nodes):
    return [n.name for n in nodes]


class TestOrdering:
    def test_projects_ordered_by_order_field(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        assert _names(tree.roots) == ["Inbox", "Work"]

    def test_sections_before_loose_tasks(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        work = tree.roots[1]
        assert [c.kind for c in work.children] == ["section", "section", "task"]
        assert _names(work.children) == ["Now", "Later", "Expense claim"]

    def test_tasks_ordered_within_project(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        inbox = tree.roots[0]
        assert _names(inbox.children) == ["Call bank", "Buy milk"]

    def test_ties_keep_input_order(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id(
            [
                Task(id="b", content="B", project_id="p", order=1),
                Task(id="a", content="A", project_id="p", order=1),
                Task(id="c", content="C", project_id="p", order=0),
            ]
        )
        tree = build_tree(tasks, projects, {})
        assert _names(tree.roots[0].children) == ["C", "B", "A"]

    def test_subtasks_nested_and_ordered(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id(
            [
                Task(id="root", content="Root", project_id="p"),
                Task(id="c2", content="Second", project_id="p", parent_id="root", order=2),
                Task(id="c1", content="First", project_id="p", parent_id="root", order=1),
                Task(id="gc", content="Grandchild", project_id="p", parent_id="c2"),
            ]
        )
        tree = build_tree(tasks, projects, {})
        root = tree.roots[0].children[0]
        assert _names(root.children) == ["First", "Second"]
        assert _names(root.children[1].children) == ["Grandchild"]


class TestCompleteness:
    def test_every_task_exactly_once(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        ids = [t.id for t in tree.iter_tasks()]
        assert sorted(ids) == sorted(t.id for t in tasks)
        assert count_tasks(tree) == len(tasks)

    def test_task_under_its_section(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        now = tree.roots[1].children[0]
        assert now.name == "Now"
        assert _names(now.children) == ["Write report"]
        assert _names(now.children[0].children) == ["Outline"]

    def test_missing_parent_becomes_top_level(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id([Task(id="x", content="Orphan child", project_id="p", parent_id="gone")])
        tree = build_tree(tasks, projects, {})
        assert _names(tree.roots[0].children) == ["Orphan child"]

    def test_section_from_other_project_falls_back_to_project(self):
        projects = _by_id([Project(id="p", name="P"), Project(id="q", name="Q", order=1)])
        sections = {"s": Section(id="s", name="S", project_id="q")}
        tasks = _by_id([Task(id="x", content="X", project_id="p", section_id="s")])
        tree = build_tree(tasks, projects, sections)
        assert _names(tree.roots[0].children) == ["X"]
        assert tree.roots[1].children[0].children == []


class TestUnassigned:
    def test_task_with_unknown_project(self, projects):
        tasks = _by_id([Task(id="x", content="Lost", project_id="nope")])
        tree = build_tree(tasks, _by_id(projects), {})
        assert tree.roots[-1].name == UNASSIGNED_NAME
        assert _names(tree.roots[-1].children) == ["Lost"]
        assert count_tasks(tree) == 1
        assert [w.kind for w in tree.warnings] == ["orphan"]

    def test_section_with_unknown_project(self, projects):
        sections = {"s": Section(id="s", name="Stray", project_id="nope")}
        tasks = _by_id([Task(id="x", content="In stray", project_id="nope", section_id="s")])
        tree = build_tree(tasks, _by_id(projects), sections)
        bucket = tree.roots[-1]
        assert bucket.kind == "unassigned"
        assert _names(bucket.children) == ["Stray"]
        assert _names(bucket.children[0].children) == ["In stray"]

    def test_no_bucket_when_everything_resolves(self, tasks, projects, sections):
        tree = build_tree(_by_id(tasks), _by_id(projects), _by_id(sections))
        assert all(root.kind == "project" for root in tree.roots)
        assert tree.warnings == []


class TestCycles:
    def test_three_cycle_is_bounded(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id(
            [
                Task(id="a", content="A", project_id="p", parent_id="c"),
                Task(id="b", content="B", project_id="p", parent_id="a"),
                Task(id="c", content="C", project_id="p", parent_id="b"),
            ]
        )
        tree = build_tree(tasks, projects, {})

        assert count_tasks(tree) == 3
        a = tree.roots[0].children[0]
        assert a.name == "A"
        b = a.children[0]
        c = b.children[0]
        assert c.name == "C"
        assert c.children == []
        assert [w.kind for w in tree.warnings] == ["cycle"]

    def test_self_parent(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id([Task(id="a", content="A", project_id="p", parent_id="a")])
        tree = build_tree(tasks, projects, {})
        assert count_tasks(tree) == 1

    def test_branch_hanging_off_cycle(self):
        projects = {"p": Project(id="p", name="P")}
        tasks = _by_id(
            [
                Task(id="d", content="D", project_id="p", parent_id="b"),
                Task(id="a", content="A", project_id="p", parent_id="b"),
                Task(id="b", content="B", project_id="p", parent_id="a"),
            ]
        )
        tree = build_tree(tasks, projects, {})
        assert sorted(t.id for t in tree.iter_tasks()) == ["a", "b", "d"]
