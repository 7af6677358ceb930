"""Tests for credential providers."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest
import typer

from replica_transport.credentials import (
    InteractiveCredentialProvider,
    NetrcCredentialProvider,
    NoCredentialProvider,
    StaticCredentialProvider,
)
from replica_transport.exceptions import CredentialProviderError, UnreachableProviderError
from replica_transport.types import Credential

URL = "https://replica.example/api/v2/status"


class TestNoCredentialProvider:
    def test_cached_is_unreachable(self) -> None:
        with pytest.raises(UnreachableProviderError):
            NoCredentialProvider().cached(URL)

    def test_required_is_unreachable(self) -> None:
        with pytest.raises(UnreachableProviderError):
            NoCredentialProvider().required(URL)


def test_static_provider_returns_same_credential(alice: Credential) -> None:
    provider = StaticCredentialProvider(alice)
    assert provider.cached(URL) is alice
    assert provider.required(URL) is alice


class TestNetrcCredentialProvider:
    """Tests for netrc-backed lookup."""

    def _write_netrc(self, tmp_path: Path, content: str) -> Path:
        path = tmp_path / "netrc"
        path.write_text(content, encoding="utf-8")
        path.chmod(0o600)
        return path

    def test_cached_reads_matching_host(self, tmp_path: Path) -> None:
        path = self._write_netrc(
            tmp_path, "machine replica.example login alice password wonderland\n"
        )
        provider = NetrcCredentialProvider(str(path))

        assert provider.cached(URL) == Credential(username="alice", password="wonderland")

    def test_cached_returns_none_for_unknown_host(self, tmp_path: Path) -> None:
        path = self._write_netrc(tmp_path, "machine other.example login bob password x\n")
        provider = NetrcCredentialProvider(str(path))

        assert provider.cached(URL) is None

    def test_missing_file_is_provider_error(self, tmp_path: Path) -> None:
        provider = NetrcCredentialProvider(str(tmp_path / "absent"))

        with pytest.raises(CredentialProviderError):
            provider.cached(URL)

    def test_default_lookup_uses_requests_netrc_discovery(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = self._write_netrc(tmp_path, "machine replica.example login carol password c4\n")
        monkeypatch.setenv("NETRC", str(path))

        assert NetrcCredentialProvider().cached(URL) == Credential(username="carol", password="c4")

    def test_required_always_fails(self, tmp_path: Path) -> None:
        provider = NetrcCredentialProvider(str(tmp_path / "netrc"))

        with pytest.raises(CredentialProviderError, match="no interactive source"):
            provider.required(URL)


class ScriptedPrompt:
    """Prompt stand-in returning queued answers, optionally slowly."""

    def __init__(self, answers: list[str], delay_seconds: float = 0.0) -> None:
        self.answers = list(answers)
        self.delay_seconds = delay_seconds
        self.questions: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self, text: str, hide_input: bool = False) -> str:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.questions.append(text)
        time.sleep(self.delay_seconds)
        with self._lock:
            self.active -= 1
            return self.answers.pop(0)


class TestInteractiveCredentialProvider:
    """Tests for the terminal prompting provider."""

    def test_nothing_cached_before_prompt(self) -> None:
        provider = InteractiveCredentialProvider(prompt=ScriptedPrompt([]))
        assert provider.cached(URL) is None

    def test_required_prompts_and_remembers_per_origin(self) -> None:
        prompt = ScriptedPrompt(["alice", "wonderland"])
        provider = InteractiveCredentialProvider(prompt=prompt)

        credential = provider.required(URL)

        assert credential == Credential(username="alice", password="wonderland")
        assert prompt.questions == [
            "Username for https://replica.example",
            "Password for alice@https://replica.example",
        ]
        assert provider.cached("https://replica.example/api/v2/canister/x/query") == credential
        assert provider.cached("https://other.example/api/v2/status") is None

    def test_repeated_required_prompts_again(self) -> None:
        prompt = ScriptedPrompt(["alice", "wrong", "alice", "right"])
        provider = InteractiveCredentialProvider(prompt=prompt)

        provider.required(URL)
        second = provider.required(URL)

        assert second.password == "right"
        assert provider.cached(URL) == second

    def test_aborted_prompt_is_provider_error(self) -> None:
        def abort(text: str, hide_input: bool = False) -> str:
            raise typer.Abort()

        provider = InteractiveCredentialProvider(prompt=abort)

        with pytest.raises(CredentialProviderError, match="aborted"):
            provider.required(URL)

    def test_concurrent_required_calls_share_one_prompt(self) -> None:
        prompt = ScriptedPrompt(["alice", "wonderland"], delay_seconds=0.2)
        provider = InteractiveCredentialProvider(prompt=prompt)
        results: list[Credential] = []
        barrier = threading.Barrier(4)

        def worker() -> None:
            barrier.wait()
            results.append(provider.required(URL))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert prompt.max_active == 1
        assert len(prompt.questions) == 2
        assert results == [Credential(username="alice", password="wonderland")] * 4
