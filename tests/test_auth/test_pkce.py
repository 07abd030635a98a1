"""Tests for PKCE verifier and challenge generation."""

from __future__ import annotations

import pytest

from spotify_web_api.auth.pkce import (
    MAX_VERIFIER_LENGTH,
    MIN_VERIFIER_LENGTH,
    VERIFIER_ALPHABET,
    PkcePair,
    code_challenge,
    generate_pkce_pair,
)
from spotify_web_api.exceptions import ConfigurationError


class TestCodeChallenge:
    def test_rfc7636_appendix_b_vector(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_deterministic(self) -> None:
        assert code_challenge("a" * 43) == code_challenge("a" * 43)

    def test_no_padding(self) -> None:
        assert "=" not in code_challenge("x" * 64)


class TestGeneratePkcePair:
    def test_default_length(self) -> None:
        pair = generate_pkce_pair()
        assert len(pair.verifier) == MAX_VERIFIER_LENGTH

    @pytest.mark.parametrize("length", [MIN_VERIFIER_LENGTH, 64, MAX_VERIFIER_LENGTH])
    def test_length_in_range(self, length: int) -> None:
        pair = generate_pkce_pair(length)
        assert len(pair.verifier) == length
        assert set(pair.verifier) <= set(VERIFIER_ALPHABET)

    def test_challenge_matches_verifier(self) -> None:
        pair = generate_pkce_pair()
        assert pair.challenge == code_challenge(pair.verifier)

    def test_pairs_are_unique(self) -> None:
        assert generate_pkce_pair().verifier != generate_pkce_pair().verifier

    @pytest.mark.parametrize("length", [0, 42, 129])
    def test_length_out_of_range(self, length: int) -> None:
        with pytest.raises(ConfigurationError, match="between 43 and 128"):
            generate_pkce_pair(length)

    def test_alphabet_size(self) -> None:
        assert len(VERIFIER_ALPHABET) == 66

    def test_repr_hides_verifier(self) -> None:
        pair = PkcePair(verifier="secret-verifier", challenge="abc")
        assert "secret-verifier" not in repr(pair)
