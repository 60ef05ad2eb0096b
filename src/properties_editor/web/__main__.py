"""Entry point: python -m properties_editor.web"""

from properties_editor.web.launcher import main

if __name__ == "__main__":
    main()
