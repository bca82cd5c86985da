"""
Shared Rich Console singleton for terminal output.

Every module in lmrepl prints through this one Console instead of creating
its own. Rich's Console tracks terminal state (width, color support, the
cursor position of partially printed lines), and streamed model output is
written fragment by fragment without newlines, so a second Console writing in
between would interleave badly with it.

It also gives tests a single seam: patch `lmrepl.<module>.console` or hand a
Console(file=StringIO()) to the components that accept one.

Usage:
    from .console import console
    console.print("[green]Done[/green]")
"""

from rich.console import Console

console = Console()
