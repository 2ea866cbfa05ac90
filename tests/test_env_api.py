"""
Tests for Gymnasium environment API.
"""

import gymnasium as gym
import numpy as np
import pytest

from wagara_blast.wagara_core.config_loader import load_config
from wagara_blast.wagara_core.env_gym import WagaraEnv


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env():
    env = WagaraEnv(invalid_action_penalty=-1.0)
    yield env
    env.close()


def first_legal(mask):
    return tuple(int(v) for v in np.argwhere(mask)[0])


class TestWagaraEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert isinstance(info, dict)

    def test_observation_in_space(self, env):
        obs, _ = env.reset(seed=42)
        assert set(obs) == set(env.observation_space.spaces)
        assert env.observation_space.contains(obs)

    def test_action_space(self, env, config):
        n = config.grid.default_size
        assert env.action_space.nvec.tolist() == [config.pieces.tray_size, n, n]

    def test_info_contents(self, env):
        _, info = env.reset(seed=1)
        assert info["score"] == 0
        assert info["status"] == "active"
        assert info["action_mask"].shape == (3, 8, 8)
        assert info["action_mask"].dtype == np.bool_
        assert info["action_mask"].any()

    def test_step_returns_five_values(self, env):
        """Step should return (obs, reward, terminated, truncated, info)."""
        _, info = env.reset(seed=42)

        result = env.step(first_legal(info["action_mask"]))

        assert isinstance(result, tuple)
        assert len(result) == 5

        obs, reward, terminated, truncated, info = result
        assert isinstance(obs, dict)
        assert isinstance(reward, float)
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert isinstance(info, dict)

    def test_legal_step_rewards_score(self, env):
        _, info = env.reset(seed=3)
        obs, reward, _, _, info = env.step(first_legal(info["action_mask"]))

        assert reward > 0
        assert reward == info["delta_score"]
        assert int(obs["score"]) == info["score"]
        assert not info["invalid_action"]
        assert "place" in info["events"]

    def test_illegal_step_penalised(self, env):
        """Reusing an emptied slot is rejected and the state is unchanged."""
        _, info = env.reset(seed=5)
        slot, row, col = first_legal(info["action_mask"])
        _, _, _, _, info = env.step((slot, row, col))
        score_before = info["score"]

        obs, reward, terminated, _, info = env.step((slot, 0, 0))
        assert reward == -1.0
        assert info["invalid_action"]
        assert info["events"] == ["invalid_drop"]
        assert info["score"] == score_before
        assert not terminated
        assert not info["action_mask"][slot].any()

    def test_step_before_reset(self, env):
        with pytest.raises(RuntimeError):
            env.step((0, 0, 0))

    def test_deterministic_with_seed(self):
        """Same seed and actions give identical trajectories."""
        env1 = WagaraEnv()
        env2 = WagaraEnv()

        obs1, info1 = env1.reset(seed=123)
        obs2, info2 = env2.reset(seed=123)
        for key in obs1:
            np.testing.assert_array_equal(obs1[key], obs2[key])

        for _ in range(10):
            if not info1["action_mask"].any():
                break
            action = first_legal(info1["action_mask"])
            obs1, r1, t1, _, info1 = env1.step(action)
            obs2, r2, t2, _, info2 = env2.step(action)
            assert r1 == r2
            for key in obs1:
                np.testing.assert_array_equal(obs1[key], obs2[key])
            if t1:
                break

        env1.close()
        env2.close()

    def test_level_option(self, env):
        obs, _ = env.reset(seed=0, options={"mode": "level", "level_id": 4})
        assert obs["cell_state"][3, 3] == 2
        assert obs["cell_state"][4, 4] == 2

    def test_daily_mode(self):
        env = WagaraEnv(mode="daily", daily_date="2025-01-07")
        obs, _ = env.reset(seed=0)
        assert (obs["cell_state"] == 2).sum() >= 2
        assert int(obs["moves_remaining"]) == -1
        env.close()

    def test_capped_level_moves_remaining(self, env):
        obs, _ = env.reset(seed=0, options={"mode": "level", "level_id": 15})
        assert int(obs["moves_remaining"]) == 30

    def test_truncation(self):
        env = WagaraEnv(max_steps=1)
        _, info = env.reset(seed=9)
        _, _, terminated, truncated, _ = env.step(first_legal(info["action_mask"]))
        assert truncated
        assert not terminated
        env.close()

    def test_random_rollout(self, env):
        """Masked random play keeps the score non-decreasing and the obs valid."""
        _, info = env.reset(seed=11)
        rng = np.random.default_rng(11)
        score = 0

        for _ in range(300):
            legal = np.argwhere(info["action_mask"])
            if len(legal) == 0:
                break
            action = tuple(int(v) for v in legal[rng.integers(len(legal))])
            obs, reward, terminated, _, info = env.step(action)
            assert info["score"] >= score
            assert reward >= 10
            assert env.observation_space.contains(obs)
            score = info["score"]
            if terminated:
                assert info["status"] == "game_over"
                break

    def test_render_ansi(self):
        env = WagaraEnv(render_mode="ansi")
        env.reset(seed=0, options={"mode": "level", "level_id": 4})
        text = env.render()
        lines = text.splitlines()
        assert len(lines) == 9
        assert lines[3].split()[3] == "S"
        assert lines[-1].startswith("score=0")
        env.close()

    def test_render_none_without_mode(self, env):
        env.reset(seed=0)
        assert env.render() is None


class TestRegistration:

    def test_make(self):
        env = gym.make("WagaraBlast-8x8-v0")
        obs, info = env.reset(seed=0)
        assert "cell_state" in obs
        assert "action_mask" in info
        env.close()
