from party_mc.services.game_state import GameState
from party_mc.services.message_inference import Inference, apply_user_message


def _state_with(*names, introduced=False):
    state = GameState()
    for name in names:
        state.add_player(name)
        if introduced:
            state.mark_last_introduced_ready()
    return state


def test_new_name_is_added_pre_start():
    state = GameState()

    result = apply_user_message(state, "Alice")

    assert result.kind == "add_player"
    assert [p.model_dump() for p in state.players] == [{"name": "Alice", "introduced": False}]


def test_candidate_is_the_last_word():
    state = GameState()
    apply_user_message(state, "hi everyone my name is Bob")
    assert [p.name for p in state.players] == ["Bob"]


def test_candidate_split_on_any_whitespace():
    state = GameState()
    apply_user_message(state, "my name is\nAlice\t")
    assert [p.name for p in state.players] == ["Alice"]


def test_known_name_in_other_case_is_not_added_again():
    state = _state_with("Alice")
    result = apply_user_message(state, "ALICE")
    assert result.kind == "none"
    assert len(state.players) == 1


def test_single_character_token_is_ignored():
    state = GameState()
    result = apply_user_message(state, "a")
    assert result.kind == "none"
    assert state.players == []


def test_empty_message_is_noop():
    state = GameState()
    assert apply_user_message(state, "").kind == "none"
    assert apply_user_message(state, "   ").kind == "none"
    assert state.players == []


def test_ready_marks_last_player_and_starts_game():
    state = _state_with("Alice", "Bob")
    state.players[0].introduced = True

    result = apply_user_message(state, "ready")

    assert result.kind == "ready"
    assert state.players[1].introduced is True
    assert state.game_started is True


def test_ready_phrase_does_not_register_a_player_called_ready():
    state = _state_with("Alice")

    apply_user_message(state, "I'm ready!")

    assert [p.name for p in state.players] == ["Alice"]
    assert state.players[0].introduced is True
    assert state.game_started is False


def test_ready_without_enough_players_does_not_start():
    state = _state_with("Alice")
    apply_user_message(state, "READY")
    assert state.game_started is False


def test_name_branch_wins_over_ready_branch():
    state = GameState()
    result = apply_user_message(state, "ready when you are, call me Zoe")
    assert result.kind == "add_player"
    assert state.players[0].introduced is False


def test_started_game_advances_on_any_message():
    state = _state_with("Alice", "Bob", introduced=True)
    state.try_start_game()

    apply_user_message(state, "I pick dare")
    assert state.current_player_index == 1

    apply_user_message(state, "Charlie")
    assert state.current_player_index == 0
    assert [p.name for p in state.players] == ["Alice", "Bob"]


def test_custom_classifier_is_used():
    class AlwaysReady:
        def classify(self, state, message):
            return Inference("ready")

    state = _state_with("Alice", "Bob")
    state.players[0].introduced = True

    apply_user_message(state, "Carol", classifier=AlwaysReady())

    assert [p.name for p in state.players] == ["Alice", "Bob"]
    assert state.game_started is True
