"""Allow running as `python -m git_folder_triage`."""

from .cli import app

app(prog_name="git-folder-triage")
