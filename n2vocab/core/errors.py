"""Exceptions raised at the boundaries of the learning engine."""


class N2VocabError(Exception):
    """Base class for application errors."""
    pass


class VocabularyImportError(N2VocabError):
    """Vocabulary payload could not be imported."""
    pass


class PersistenceError(N2VocabError):
    """Review state could not be read or written."""
    pass
