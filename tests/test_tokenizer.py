import pytest

from smartcode.chunking.tokenizer import (
    ChunkingParams,
    estimate_tokens,
    get_chunking_params,
    get_model_token_limit,
)


def test_estimate_tokens_by_word_length() -> None:
    assert estimate_tokens("") == 0
    assert estimate_tokens("abc") == 1
    assert estimate_tokens("abcdefgh") == 2
    assert estimate_tokens("abcdefghijkl") == 3
    assert estimate_tokens("one two three") == 4


def test_estimate_tokens_charges_punctuation() -> None:
    # one short word plus two special characters
    assert estimate_tokens("f(x)") == 2
    assert estimate_tokens("f(x)") > estimate_tokens("fx")


def test_estimate_is_deterministic() -> None:
    text = "OnBegin<override>()<suspends>:void=\n    Print(\"hello\")"
    assert estimate_tokens(text) == estimate_tokens(text)


def test_model_limits() -> None:
    assert get_model_token_limit("Xenova/all-MiniLM-L6-v2") == 256
    assert get_model_token_limit("bge-small-en-v1.5") == 512
    assert get_model_token_limit("text-embedding-3-small") == 8191
    assert get_model_token_limit("something-unknown") == 256
    assert get_model_token_limit(None) == 256


def test_chunking_params_derived_from_model() -> None:
    params = get_chunking_params("something-unknown")
    assert params == ChunkingParams(max_tokens=256, target_tokens=217, overlap_tokens=39)


def test_chunking_params_overrides() -> None:
    params = get_chunking_params("text-embedding-3-small", target_override=100, overlap_override=0)
    assert params.target_tokens == 100
    assert params.overlap_tokens == 0
    assert params.max_tokens == 8191


@pytest.mark.parametrize("target, overlap", [(0, 0), (10, 10), (10, -1)])
def test_chunking_params_validation(target: int, overlap: int) -> None:
    with pytest.raises(ValueError):
        ChunkingParams(max_tokens=100, target_tokens=target, overlap_tokens=overlap)
