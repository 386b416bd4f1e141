"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main, render_board
from ..engine_core.reducer import deploy_unit, start_game
from ..engine_core.state import Position, create_initial_state, sequential_ids


class TestCLI:

    def test_scenarios_lists_builtins(self, capsys):
        main(["scenarios"])
        out = capsys.readouterr().out
        assert "battle (default): Battle" in out
        assert "skirmish" in out
        assert "grand_battle" in out

    def test_board_prints_reserves(self, capsys):
        main(["board", "--scenario", "skirmish"])
        out = capsys.readouterr().out
        assert "Scenario: skirmish" in out
        assert "Player 1 reserve: infantry 2 [1-infantry-1]" in out

    def test_board_unknown_scenario_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["board", "--scenario", "siege"])
        assert exc_info.value.code == 1
        assert "UNKNOWN_SCENARIO" in capsys.readouterr().out

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit):
            main([])


class TestRenderBoard:

    def test_deployed_unit_is_drawn(self):
        state = start_game(create_initial_state(), "skirmish", sequential_ids())
        state = deploy_unit(state, state.p1_reserve[0].id, Position(1, 0))

        text = render_board(state)
        row0 = next(line for line in text.splitlines() if line.startswith("0 |"))
        assert "P1I2" in row0
