import json

import pytest

from clockwork.common import ActionID
from clockwork.core import Clock, Player
from clockwork.rotation import (
    ROTATIONS,
    EagerHit,
    Empty,
    Repeat,
    Rotation,
    build_rotation,
)


def test_empty():
    player = Player(Clock())
    assert Empty().decide(player.view()) is None


def test_rotation_is_abstract():
    with pytest.raises(TypeError):
        Rotation()


def test_repeat():
    player = Player(Clock())
    rotation = Repeat([ActionID.HIT, ActionID.HIT, ActionID.RECHARGE])
    decisions = [rotation.decide(player.view()) for _ in range(4)]
    assert decisions == [ActionID.HIT, ActionID.HIT, ActionID.RECHARGE, ActionID.HIT]


def test_repeat_takes_locks_into_account():
    player = Player(Clock())
    player.begin(ActionID.HIT)
    rotation = Repeat([ActionID.HIT])
    assert rotation.decide(player.view()) is None


def test_repeat_waits_instead_of_skipping():
    clock = Clock()
    player = Player(clock)
    player.begin(ActionID.HIT)
    rotation = Repeat([ActionID.RECHARGE, ActionID.HIT])

    for _ in range(250):
        assert rotation.decide(player.view()) is None
        assert rotation.current_index == 0
        clock.advance()
        player.perform()

    assert rotation.decide(player.view()) == ActionID.RECHARGE
    assert rotation.current_index == 1


def test_repeat_reset():
    player = Player(Clock())
    rotation = Repeat([ActionID.HIT, ActionID.RECHARGE])
    rotation.decide(player.view())
    rotation.reset()
    assert rotation.decide(player.view()) == ActionID.HIT


def test_repeat_needs_actions():
    with pytest.raises(ValueError):
        Repeat([])


def test_repeat_json(tmp_path):
    path = tmp_path / "rotation.json"
    path.write_text(
        json.dumps({"name": "double", "actions": ["hit", "hit", "recharge"]}),
        encoding="utf-8",
    )

    rotation = Repeat.load_from_json(str(path))

    assert rotation.name == "double"
    assert rotation.actions == [ActionID.HIT, ActionID.HIT, ActionID.RECHARGE]
    assert rotation.actions[0] is ActionID.HIT

    out = tmp_path / "saved.json"
    rotation.save_to_file(str(out))
    assert json.loads(out.read_text(encoding="utf-8")) == rotation.to_dict()


def test_repeat_json_without_actions():
    with pytest.raises(ValueError):
        Repeat.from_dict({"name": "broken"})


def test_eager_hit_prefers_hit():
    player = Player(Clock())
    assert EagerHit().decide(player.view()) == ActionID.HIT


def test_eager_hit_recharges_when_low():
    player = Player(Clock(), mp=999)
    assert EagerHit().decide(player.view()) == ActionID.RECHARGE


def test_eager_hit_respects_locks():
    player = Player(Clock())
    player.begin(ActionID.HIT)
    assert EagerHit().decide(player.view()) is None


def test_build_rotation():
    assert isinstance(build_rotation("empty"), Empty)
    assert isinstance(build_rotation("Eager-Hit"), EagerHit)

    rotation = build_rotation("HIT-RECHARGE")
    assert isinstance(rotation, Repeat)
    assert rotation.actions == [ActionID.HIT, ActionID.RECHARGE]
    assert rotation.name == "hit-recharge"


def test_build_rotation_returns_fresh_instances():
    assert build_rotation("hit-recharge") is not build_rotation("hit-recharge")


def test_build_unknown_rotation():
    with pytest.raises(ValueError, match="choose from"):
        build_rotation("fire-spam")
    assert "fire-spam" not in ROTATIONS
