"""Tests for the Rich renderers."""

from __future__ import annotations

from tradelink.output.console import create_console, get_output, style_for_status
from tradelink.output.renderers import render_quiet, render_result
from tradelink.services.result import ServiceError, ServiceResult


def _summary(ref: str, name: str, **extra: str) -> dict[str, str]:
    kind, _, ident = ref.partition(":")
    return {"id": ident, "kind": kind, "ref": ref, "name": name, **extra}


class TestErrors:
    def test_error_line(self) -> None:
        result = ServiceResult(
            ok=False,
            op="send_request",
            error=ServiceError(code="BLOCKED", message="account is blocked"),
        )
        out = render_result(result)
        assert "ERROR" in out
        assert "send_request [BLOCKED]" in out
        assert "account is blocked" in out

    def test_detail_only_when_verbose(self) -> None:
        result = ServiceResult(
            ok=False,
            op="accept_request",
            error=ServiceError(code="CONFLICT", message="x", detail={"connection_id": 3}),
        )
        assert "connection_id" not in render_result(result)
        assert "connection_id: 3" in render_result(result, verbose=True)


class TestConnectionRenderers:
    def test_single_connection(self) -> None:
        result = ServiceResult(
            ok=True,
            op="send_request",
            data={
                "action": "accept",
                "connection": {
                    "id": 4,
                    "requester": "individual:ann",
                    "recipient": "individual:bob",
                    "status": "accepted",
                    "is_following": True,
                },
                "effects": {"ensure_mutual_follow": {"created": 2, "upgraded": 0}},
            },
        )
        out = render_result(result)
        assert "action: accept" in out
        assert "status: accepted" in out
        assert "ensure_mutual_follow" in out

    def test_connection_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_connections",
            data={
                "count": 1,
                "items": [
                    {
                        "id": 4,
                        "status": "pending",
                        "direction": "sent",
                        "is_following": True,
                        "account": _summary("individual:bob", "Bob Test"),
                    }
                ],
            },
        )
        out = render_result(result)
        assert "Bob Test (individual:bob)" in out
        assert "pending" in out
        assert "1 connections" in out

    def test_relation(self) -> None:
        result = ServiceResult(
            ok=True,
            op="connection_status",
            data={"account": "individual:ann", "other": "individual:bob", "status": "blocked"},
        )
        assert "status: blocked" in render_result(result)


class TestOtherRenderers:
    def test_suggestions_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="get_suggestions",
            data={
                "count": 1,
                "items": [
                    {
                        **_summary("individual:cal", "Cal Test", locality="Leeds"),
                        "reason": "same location",
                    }
                ],
            },
        )
        out = render_result(result)
        assert "individual:cal" in out
        assert "same location" in out
        assert "1 suggestions" in out

    def test_no_suggestions(self) -> None:
        result = ServiceResult(ok=True, op="get_suggestions", data={"count": 0, "items": []})
        assert render_result(result) == "No suggestions."

    def test_block_removed_counts(self) -> None:
        result = ServiceResult(
            ok=True,
            op="block",
            data={
                "blocker": "individual:ann",
                "blocked": "individual:bob",
                "removed": {"connections": 1, "follows": 2, "contacts": 2},
            },
        )
        out = render_result(result)
        assert "removed follows: 2" in out

    def test_contact_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list_contacts",
            data={
                "count": 1,
                "items": [
                    {
                        "id": 1,
                        "first_name": "Bob",
                        "last_name": "Test",
                        "email": "bob@example.com",
                        "phone": "",
                        "is_platform_user": True,
                        "platform_user_id": "bob",
                    }
                ],
            },
        )
        out = render_result(result)
        assert "Bob Test" in out
        assert "bob@example.com" in out

    def test_degree_path(self) -> None:
        result = ServiceResult(
            ok=True,
            op="degree",
            data={"degree": 2, "path": ["individual:a", "individual:b", "individual:c"]},
        )
        out = render_result(result)
        assert "individual:a → individual:b → individual:c" in out
        assert "Degree: 2" in out

    def test_unknown_op_falls_back(self) -> None:
        result = ServiceResult(ok=True, op="mystery", data={"answer": 42})
        assert "answer: 42" in render_result(result)

    def test_verbose_renders_telemetry(self) -> None:
        result = ServiceResult(
            ok=True,
            op="mystery",
            meta={"telemetry": {"name": "Svc.op", "duration_ms": 1.5, "children": []}},
        )
        out = render_result(result, verbose=True)
        assert "Svc.op" in out
        assert "1.50ms" in out

    def test_verbose_renders_span_outcome(self) -> None:
        tree = {
            "name": "SuggestionService.get_suggestions",
            "duration_ms": 2.0,
            "ok": True,
            "children": [{"name": "tier.locality", "duration_ms": 0.5, "candidates": 4}],
        }
        result = ServiceResult(ok=True, op="mystery", meta={"telemetry": tree})
        out = render_result(result, verbose=True)
        assert "(ok=True)" in out
        assert "tier.locality  (candidates=4)" in out


class TestQuietAndConsole:
    def test_quiet_ok_without_ids(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="unblock")) == "OK: unblock"

    def test_console_buffer(self) -> None:
        console = create_console(no_color=True)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_status_styles(self) -> None:
        assert style_for_status("pending_received") == "tl.status.pending"
        assert style_for_status("unknown") == ""
