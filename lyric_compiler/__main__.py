"""Package entry point for ``python -m lyric_compiler``.

WHY: Lets the compiler run as ``python -m lyric_compiler payload.json``
without installing the console script.

RULES:
- This file must exist for ``python -m lyric_compiler`` to work
- All arguments are handled by the CLI's main()
"""

from lyric_compiler.cli import main

if __name__ == "__main__":
    main()
