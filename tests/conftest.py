import io
import mido
import pytest

SCALE = "X:1\nT:Test Escala\nM:4/4\nK:C\nCDEFGABc"

@pytest.fixture
def scale_abc() -> str:
    return SCALE

def read_midi(data: bytes) -> mido.MidiFile:
    return mido.MidiFile(file=io.BytesIO(data), charset="utf-8")

@pytest.fixture
def midi_reader():
    return read_midi
