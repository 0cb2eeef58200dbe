import asyncio

from conftest import FakeBackend, msg

from party_mc.services.stream_encoding import encode_turn, error_part, finish_part, text_part
from party_mc.services.turn_controller import TurnController, TurnPhase


def test_parts_are_json_framed():
    assert text_part('say "hi"\n') == '0:"say \\"hi\\"\\n"\n'
    assert error_part("An error occurred.") == '3:"An error occurred."\n'
    assert finish_part("stop") == 'd:{"finishReason":"stop"}\n'


def test_data_stream_cancelled_mid_stream_ends_with_abort():
    controller = TurnController(backend_factory=lambda: FakeBackend(["Hi"], hang=True))

    async def scenario():
        turn = await controller.open_turn([msg("user", "Alice")], "enc")
        stream = encode_turn(turn, "data")
        lines = [await stream.__anext__()]
        controller.cancel("enc")
        lines += [line async for line in stream]
        return turn, lines

    turn, lines = asyncio.run(scenario())

    assert lines == ['0:"Hi"\n', 'd:{"finishReason":"abort"}\n']
    assert turn.phase == TurnPhase.ABORTED


def test_text_stream_is_raw_chunks():
    controller = TurnController(backend_factory=lambda: FakeBackend(["a", "b"]))

    async def scenario():
        turn = await controller.open_turn([msg("user", "Alice")], "raw")
        return [chunk async for chunk in encode_turn(turn, "text")]

    assert asyncio.run(scenario()) == ["a", "b"]
