"""ragbox rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from ragbox.cli.errors import err_gateway
    console.print(err_gateway("LLM HTTP 500", "http://localhost:11434"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

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
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = "rag.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  ragbox init"
    )


def err_validation(message: str) -> str:
    """Required input missing or blank."""
    return (
        f"[red]Error:[/] {escape(message)}.\n"
        "  Use:  ragbox ingest --title TITLE --content TEXT   or   ragbox ask \"QUESTION\""
    )


def err_gateway(message: str, host: str) -> str:
    """Generation service failed (unreachable, timeout, bad status, bad body)."""
    return (
        f"[red]Error:[/] Generation failed: {escape(message)}\n"
        f"  Check that the model server at {host} is running, e.g.  ollama serve\n"
        "  and that the model is pulled:  ollama pull llama3"
    )


def err_storage(message: str, db_path: str) -> str:
    """SQLite failure; the write was rolled back."""
    return (
        f"[red]Error:[/] Database error on '{db_path}': {escape(message)}\n"
        "  No changes were written. Run:  ragbox status  to inspect the database."
    )


def err_config(message: str) -> str:
    """Invalid ragbox.yaml / global config."""
    return (
        f"[red]Error:[/] Invalid configuration.\n  {escape(message)}\n"
        "  Fix ragbox.yaml (or ~/.ragbox/config.yaml) and run the command again."
    )


def err_file_not_found(path: str) -> str:
    """--file path does not exist or is not readable."""
    return (
        f"[red]Error:[/] Cannot read file '{path}'.\n"
        "  Use:  ragbox ingest --title TITLE --file PATH  with an existing UTF-8 text file."
    )
