"""Package entry point for ``python -m transcript_editor``.

Delegates to the CLI's main() function.
"""

from transcript_editor.cli import main

if __name__ == "__main__":
    main()
