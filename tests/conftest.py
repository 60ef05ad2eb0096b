"""Pytest fixtures shared across all tests."""

from __future__ import annotations

import pytest

from properties_editor.core.models import ParsedFile
from properties_editor.core.table import TranslationTable, merge


@pytest.fixture
def en_de_files() -> list[ParsedFile]:
    """en has {a, b}, de has {b, c}: every row is missing at least once except b."""
    return [
        ParsedFile(language="en", properties={"a": "Apple", "b": "Banana"}),
        ParsedFile(language="de", properties={"b": "Banane", "c": "Kirsche"}),
    ]


@pytest.fixture
def en_de_table(en_de_files) -> TranslationTable:
    return merge(en_de_files)


@pytest.fixture
def app_table() -> TranslationTable:
    """A small, fully translated table in unsorted-looking key order."""
    return merge(
        [
            ParsedFile(
                language="en",
                properties={
                    "button.save": "Save",
                    "app.title": "Properties Editor",
                    "message.welcome": "Welcome to the Properties Editor",
                },
            ),
            ParsedFile(
                language="fr",
                properties={
                    "button.save": "Enregistrer",
                    "app.title": "Éditeur de propriétés",
                    "message.welcome": "Bienvenue dans l'éditeur de propriétés",
                },
            ),
        ]
    )
