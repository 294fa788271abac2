"""
Entry point for `python -m sigsplice`.

Usage:
    python -m sigsplice sign document.pdf --key key.pem --cert cert.pem
    python -m sigsplice check document_signed.pdf
    python -m sigsplice info document_signed.pdf
"""

from .ui.cli import main

main()
