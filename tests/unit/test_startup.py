import logging

import pytest

from hostenv.adapters.fake_environment import FakeEnvironment, ProcessTerminated
from hostenv.core.services.startup import check_required_variables, find_missing_variables


def test_find_missing_keeps_order():
    env = FakeEnvironment(variables={"B": "1", "EMPTY": ""})
    assert find_missing_variables(env, ["C", "B", "EMPTY", "A"]) == ["C", "EMPTY", "A"]


def test_all_present_returns():
    env = FakeEnvironment(variables={"DATABASE_URL": "sqlite://", "SECRET": "s"})
    check_required_variables(env, ["DATABASE_URL", "SECRET"])
    assert env.terminations == []


def test_missing_exits_through_port(caplog):
    env = FakeEnvironment(variables={"SECRET": "s"})

    with caplog.at_level(logging.CRITICAL), pytest.raises(ProcessTerminated) as excinfo:
        check_required_variables(env, ["DATABASE_URL", "SECRET"])

    assert excinfo.value.exit_code == 1
    assert env.exit_code == 1
    assert "DATABASE_URL" in caplog.text


def test_custom_exit_code():
    env = FakeEnvironment()
    with pytest.raises(ProcessTerminated):
        check_required_variables(env, ["X"], exit_code=78)
    assert env.get_last_termination().exit_code == 78
