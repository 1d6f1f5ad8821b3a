"""
Routing Result Formatter for the UI Development Power.

Formats a turn's routing result as an XML-tagged block for injection into
the assistant's context via a prompt-submit hook.

Sections:
- directive: Tells the assistant to apply the attached guidance
- modules: Newly loaded steering documents (content truncated)
- already_in_context: Selected modules surfaced on an earlier turn
- notice: Soft message when some guidance could not be loaded
- capabilities: Configured tool integrations and unconfigured ones with reasons
"""

from typing import Any, Dict, List
from xml.sax.saxutils import escape, quoteattr

MAX_CONTENT_CHARS = 4000


def _format_capabilities(capabilities: List[Dict[str, Any]]) -> str:
    if not capabilities:
        return ""
    parts = ["<capabilities>\n"]
    for status in capabilities:
        name = quoteattr(status.get("name", "unknown"))
        if status.get("available"):
            parts.append(f'<capability name={name} status="available"/>\n')
        else:
            reason = escape(status.get("reason") or "not configured")
            parts.append(f'<capability name={name} status="unavailable">{reason}</capability>\n')
    parts.append("</capabilities>\n\n")
    return "".join(parts)


def format_routing_results(routing_result: Dict[str, Any]) -> str:
    """
    Format routing results for the assistant.

    Args:
        routing_result: Result from PowerRouter.route()

    Returns:
        Formatted context block, or "" when there is nothing to report
    """
    documents = routing_result.get("documents", [])
    already_loaded = routing_result.get("already_loaded", [])
    notice = routing_result.get("notice")
    capabilities = routing_result.get("capabilities", [])

    # Early exit if nothing to inject
    if not documents and not notice and not capabilities:
        return ""

    scores = {m.get("module_id"): m.get("score", 0) for m in routing_result.get("modules", [])}

    output_parts = ['<power_routing context="ui_development">\n']

    if documents:
        output_parts.append("<directive>\n")
        output_parts.append(
            "Apply the UI/UX guidance below when answering the user's request.\n"
        )
        output_parts.append(
            "These modules were selected from keywords in the user's message.\n"
        )
        output_parts.append("</directive>\n\n")

        output_parts.append(f'<modules count="{len(documents)}">\n')
        for document in documents:
            module_id = document.get("module_id", "unknown")
            content = document.get("content", "")
            if len(content) > MAX_CONTENT_CHARS:
                content = content[:MAX_CONTENT_CHARS] + "\n[...truncated]"
            output_parts.append(
                f"<module id={quoteattr(module_id)} "
                f'relevance="{scores.get(module_id, 0)}">\n'
            )
            output_parts.append(f"<title>{escape(document.get('title', module_id))}</title>\n")
            output_parts.append(f"<category>{escape(document.get('category', ''))}</category>\n")
            output_parts.append("<content>\n")
            output_parts.append(content)
            output_parts.append("\n</content>\n")
            output_parts.append("</module>\n\n")
        output_parts.append("</modules>\n\n")

    if already_loaded:
        output_parts.append(
            f"<already_in_context>{escape(', '.join(already_loaded))}</already_in_context>\n\n"
        )

    if notice:
        failed = ", ".join(routing_result.get("failed", []))
        output_parts.append(f"<notice>{escape(notice)}")
        if failed:
            output_parts.append(f" Unavailable: {escape(failed)}.")
        output_parts.append("</notice>\n\n")

    output_parts.append(_format_capabilities(capabilities))

    output_parts.append("</power_routing>")

    return "".join(output_parts)
