from pathlib import Path


def archive(
    *,
    output_dir: str | Path | None = None,
    answers: list[str] | None = None,
) -> list[dict]:
    """Run a full archive pass and return the serialized records.

    ``answers`` replays operator input instead of prompting on the terminal.
    """
    from dataclasses import replace

    from .cli import build_orchestrator
    from .config import load_settings
    from .gate import ScriptedGate

    settings = load_settings()
    if output_dir is not None:
        settings = replace(settings, output_dir=Path(output_dir))
    gate = ScriptedGate(answers) if answers is not None else None
    summary = build_orchestrator(settings, gate=gate).run()
    return [record.to_dict() for record in summary.records]
