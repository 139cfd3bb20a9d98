"""Package entry point for ``python -m protocol_compiler``.

WHY: Users run the compiler as ``python -m protocol_compiler <paths>``
or pipe a fragment in with ``... | python -m protocol_compiler``.

HOW: Delegates to the CLI's main() function.
"""

from protocol_compiler.cli import main

if __name__ == "__main__":
    main()
