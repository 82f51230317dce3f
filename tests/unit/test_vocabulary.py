"""Tests for vocabulary module."""

import os

import pytest

from wcards.vocabulary import SAMPLE_DECK, VocabularyLoader


@pytest.fixture
def vocab_dir(test_settings):
    os.makedirs(test_settings.VOCAB_DIR)
    return test_settings.VOCAB_DIR


def write_csv(directory, name, content):
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    return path


class TestVocabularyLoader:
    """Tests for VocabularyLoader class."""

    def test_reads_translations_and_notes(self, vocab_dir, store):
        write_csv(
            vocab_dir,
            "basics.csv",
            "english_word,spanish_translations,note\n"
            "Sprinkle,esparcir|rociar|salpicar,verb\n"
            "Goodbye,Adiós,\n",
        )

        created = VocabularyLoader(vocab_dir, store).seed_if_empty()

        assert created == 2
        sprinkle = store.find_by_english_word("sprinkle")
        assert sprinkle.spanish_translations == ["esparcir", "rociar", "salpicar"]
        assert sprinkle.note == "verb"
        assert store.find_by_english_word("goodbye").note is None

    def test_skips_file_with_missing_columns(self, vocab_dir, store):
        write_csv(vocab_dir, "bad.csv", "word,translation\nHund,dog\n")
        write_csv(vocab_dir, "good.csv", "english_word,spanish_translations\nCat,Gato\n")

        records = VocabularyLoader(vocab_dir, store).read_records()

        assert records == [{"english_word": "Cat", "spanish_translations": "Gato"}]

    def test_skips_invalid_and_duplicate_rows(self, vocab_dir, store):
        write_csv(
            vocab_dir,
            "deck.csv",
            "english_word,spanish_translations\n"
            "Cat,Gato\n"
            "CAT,Felino\n"
            "Dog,\n",
        )

        assert VocabularyLoader(vocab_dir, store).seed_if_empty() == 1
        assert store.count() == 1

    def test_falls_back_to_sample_deck(self, vocab_dir, store):
        created = VocabularyLoader(vocab_dir, store).seed_if_empty()

        assert created == len(SAMPLE_DECK)
        assert store.find_by_english_word("goodbye").spanish_translations == [
            "Adiós",
            "Chao",
        ]

    def test_missing_directory_uses_sample_deck(self, test_settings, store):
        loader = VocabularyLoader(test_settings.VOCAB_DIR, store)

        assert loader.seed_if_empty() == len(SAMPLE_DECK)

    def test_does_not_seed_non_empty_store(self, vocab_dir, store, make_card):
        make_card()

        assert VocabularyLoader(vocab_dir, store).seed_if_empty() == 0
        assert store.count() == 1
