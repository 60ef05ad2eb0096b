"""Entry point: python -m properties_editor"""

from __future__ import annotations

from properties_editor.web.launcher import main

if __name__ == "__main__":
    main()
