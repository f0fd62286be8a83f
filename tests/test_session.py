"""Tests for the select -> act -> refresh session loop."""

import pytest

from todoline.actions import UPCOMING_FILTER, ActionKind, ActionResult, MenuItem
from todoline.aggregator import ViewRequest
from todoline.errors import AggregationError, AuthError, NetworkError
from todoline.session import MENU_ID, ActionSucceeded, SessionController, SessionState
from todoline.workflows import run_pipeline

ALL_IDS = ["t2", "t1", "t3", "t4", "t5", "t6"]
WITH_MENU = ALL_IDS + [MENU_ID]


@pytest.fixture
def runs():
    return []


@pytest.fixture
def pipeline(fake_gateway, runs):
    def run(filter=None):
        runs.append(filter)
        return run_pipeline(fake_gateway, ViewRequest(filter=filter or "today"))

    return run


def _controller(pipeline, selector, gateway, continuous=False, **kwargs):
    echoed: list[str] = []
    controller = SessionController(
        pipeline, selector, gateway, continuous=continuous, echo=echoed.append, **kwargs
    )
    return controller, echoed


class TestContinuous:
    def test_closed_task_gone_after_refresh(self, pipeline, fake_gateway, make_selector):
        selector = make_selector(picks=["t1"], actions=[ActionKind.CLOSE])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert selector.seen[0] == WITH_MENU
        assert "t1" not in selector.seen[1]
        assert outcome.actions == 1
        assert outcome.cancelled
        assert controller.state is SessionState.TERMINATED

    def test_failed_action_returns_to_same_list(self, pipeline, runs, fake_gateway, make_selector):
        fake_gateway.failures["close"] = NetworkError("down", attempts=4)
        selector = make_selector(picks=["t1"], actions=[ActionKind.CLOSE])
        controller, echoed = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert selector.seen[1] == WITH_MENU
        assert len(runs) == 1
        assert outcome.error is None
        assert len(outcome.failures) == 1
        assert any(line.startswith("Error:") for line in echoed)

    def test_auth_failure_terminates(self, pipeline, fake_gateway, make_selector):
        fake_gateway.failures["close"] = AuthError("token rejected")
        selector = make_selector(picks=["t1", "t2"], actions=[ActionKind.CLOSE, ActionKind.CLOSE])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert isinstance(outcome.error, AuthError)
        assert len(selector.seen) == 1

    def test_view_does_not_refresh(self, pipeline, runs, fake_gateway, make_selector):
        selector = make_selector(picks=["t3"], actions=[ActionKind.VIEW])
        controller, echoed = _controller(pipeline, selector, fake_gateway, continuous=True)

        controller.run()

        assert len(runs) == 1
        assert len(selector.seen) == 2
        assert any("Content: Write report" in line for line in echoed)

    def test_cancelled_action_menu_goes_back(self, pipeline, fake_gateway, make_selector):
        selector = make_selector(picks=["t3", "t4"], actions=[])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert len(selector.seen) == 3
        assert outcome.actions == 0

    def test_quit_ends_session(self, pipeline, fake_gateway, make_selector):
        selector = make_selector(picks=["t3", "t4"], actions=[ActionKind.QUIT])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert len(selector.seen) == 1
        assert not outcome.cancelled


class TestViewMenu:
    def test_switch_filter_refreshes_with_new_filter(self, pipeline, runs, fake_gateway, make_selector):
        selector = make_selector(picks=[MENU_ID], actions=[MenuItem.INBOX])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True, filter="today")

        controller.run()

        assert runs == ["today", "#inbox"]
        assert controller.filter == "#inbox"
        assert len(selector.seen) == 2

    def test_default_filter_restored(self, pipeline, runs, fake_gateway, make_selector):
        selector = make_selector(picks=[MENU_ID, MENU_ID], actions=[MenuItem.UPCOMING, MenuItem.DEFAULT_FILTER])
        controller, _ = _controller(
            pipeline, selector, fake_gateway, continuous=True, filter="#Work", default_filter="today"
        )

        controller.run()

        assert runs == ["#Work", UPCOMING_FILTER, "today"]

    def test_set_filter_prompts_for_query(self, pipeline, runs, fake_gateway, make_selector):
        selector = make_selector(picks=[MENU_ID], actions=[MenuItem.SET_FILTER], texts=["p1 & @focus"])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        controller.run()

        assert runs == [None, "p1 & @focus"]

    def test_create_task_then_refresh(self, pipeline, fake_gateway, make_selector):
        selector = make_selector(picks=[MENU_ID], actions=[MenuItem.CREATE_TASK], texts=["Water plants"])
        controller, echoed = _controller(pipeline, selector, fake_gateway, continuous=True)

        controller.run()

        assert [c[1] for c in fake_gateway.calls if c[0] == "create_task"] == [{"content": "Water plants"}]
        assert "new6" in selector.seen[1]
        assert "Created 'Water plants' (new6)" in echoed

    def test_cancelled_menu_goes_back_without_refresh(self, pipeline, runs, fake_gateway, make_selector):
        selector = make_selector(picks=[MENU_ID], actions=[])
        controller, _ = _controller(pipeline, selector, fake_gateway, continuous=True)

        controller.run()

        assert len(runs) == 1
        assert len(selector.seen) == 2

    def test_failed_create_keeps_session(self, pipeline, runs, fake_gateway, make_selector):
        fake_gateway.failures["create"] = NetworkError("down", attempts=4)
        selector = make_selector(picks=[MENU_ID], actions=[MenuItem.CREATE_TASK], texts=["Water plants"])
        controller, echoed = _controller(pipeline, selector, fake_gateway, continuous=True)

        outcome = controller.run()

        assert outcome.error is None
        assert len(outcome.failures) == 1
        assert len(runs) == 1
        assert any(line.startswith("Error:") for line in echoed)

    def test_single_shot_has_no_menu(self, pipeline, fake_gateway, make_selector):
        selector = make_selector()
        controller, _ = _controller(pipeline, selector, fake_gateway)

        controller.run()

        assert selector.seen == [ALL_IDS]


class TestSingleShot:
    def test_one_action_then_terminates(self, pipeline, fake_gateway, make_selector):
        selector = make_selector(picks=["t2", "t1"], actions=[ActionKind.CLOSE, ActionKind.CLOSE])
        controller, _ = _controller(pipeline, selector, fake_gateway)

        outcome = controller.run()

        assert outcome.actions == 1
        assert [c[1] for c in fake_gateway.calls if c[0] == "close_task"] == ["t2"]
        assert len(selector.seen) == 1

    def test_cancel_selection(self, pipeline, fake_gateway, make_selector):
        controller, _ = _controller(pipeline, make_selector(), fake_gateway)
        outcome = controller.run()
        assert outcome.cancelled
        assert outcome.actions == 0

    def test_failure_is_reported(self, pipeline, fake_gateway, make_selector):
        fake_gateway.failures["close"] = NetworkError("down")
        selector = make_selector(picks=["t2"], actions=[ActionKind.CLOSE])
        controller, _ = _controller(pipeline, selector, fake_gateway)

        outcome = controller.run()

        assert isinstance(outcome.error, NetworkError)


class TestRefresh:
    def test_refresh_failure_terminates(self, pipeline, fake_gateway, make_selector):
        fake_gateway.failures["projects"] = NetworkError("down")
        controller, _ = _controller(pipeline, make_selector(), fake_gateway, continuous=True)

        outcome = controller.run()

        assert isinstance(outcome.error, AggregationError)
        assert controller.state is SessionState.TERMINATED

    def test_empty_list_ends_single_shot_session(self, make_gateway, make_selector):
        gateway = make_gateway()
        selector = make_selector()
        controller, echoed = _controller(lambda filter: run_pipeline(gateway, ViewRequest()), selector, gateway)

        outcome = controller.run()

        assert echoed == ["No tasks to select from."]
        assert selector.seen == []
        assert outcome.cancelled

    def test_empty_list_still_offers_menu(self, make_gateway, make_selector):
        gateway = make_gateway()
        selector = make_selector()
        controller, echoed = _controller(
            lambda filter: run_pipeline(gateway, ViewRequest()), selector, gateway, continuous=True
        )

        outcome = controller.run()

        assert echoed == ["No tasks to select from."]
        assert selector.seen == [[MENU_ID]]
        assert outcome.cancelled


class TestEvents:
    def test_stale_event_is_dropped(self, pipeline, fake_gateway, make_selector):
        controller, _ = _controller(pipeline, make_selector(), fake_gateway)
        controller.state = SessionState.SELECTING

        controller.handle(ActionSucceeded(ActionResult(ActionKind.CLOSE, changed=True)))

        assert controller.state is SessionState.SELECTING
        assert controller.outcome.actions == 0
