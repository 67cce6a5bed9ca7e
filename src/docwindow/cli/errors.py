"""docwindow rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from docwindow.cli.errors import err_no_db
    console.print(err_no_db(".docwindow.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*; summaries will use the fallback text.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[yellow]Warning:[/] No API key for '{provider}'. "
        "Older turns will be replaced by a generic summary.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".docwindow.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Add a turn to create it:  docwindow memory add --conversation <id> "
        "--role user --text '...'\n"
        "  or point to an existing one with  --db PATH"
    )


def err_config(message: str) -> str:
    """docwindow.yaml or the global config is invalid."""
    return (
        f"[red]Error:[/] Invalid configuration.\n  {message}\n"
        "  Fix docwindow.yaml (or ~/.docwindow/config.yaml) and retry."
    )


def err_conversation_not_found(conversation_id: str) -> str:
    return (
        f"[yellow]Conversation not found:[/] '{conversation_id}' has no stored turns.\n"
        "  Run:  docwindow memory list  to see all conversations."
    )


def err_no_files() -> str:
    return (
        "[red]Error:[/] No files given.\n"
        "  Usage:  docwindow ingest report.pdf notes.md"
    )


def err_unknown_role(role: str) -> str:
    return (
        f"[red]Error:[/] Unknown role '{role}'.\n"
        "  Use one of:  user, assistant, system"
    )
