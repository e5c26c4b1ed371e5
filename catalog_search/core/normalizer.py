"""Text normalization utilities for consistent product name comparison."""

import unicodedata
from typing import List


class TextNormalizer:
    """Canonicalizes names and queries into a comparable form."""

    def normalize(self, text: str) -> str:
        """
        Normalize text for comparison.
        
        Lowercases, strips diacritics and collapses whitespace, so that
        "  Azúcar  MORENO" and "azucar moreno" compare equal.
        
        Args:
            text: Input text to normalize
            
        Returns:
            Normalized text ("" for empty input)
        """
        if not text:
            return ""
        
        normalized = self._strip_marks(text).lower()
        
        # Lowercasing can expose new decomposable characters (e.g. "İ")
        normalized = self._strip_marks(normalized)
        
        return " ".join(normalized.split())
    
    def tokenize(self, text: str) -> List[str]:
        """
        Split normalized text into whitespace-separated tokens.
        
        Args:
            text: Normalized text
            
        Returns:
            Ordered list of non-empty tokens
        """
        if not text:
            return []
        
        return text.split()
    
    @staticmethod
    def _strip_marks(text: str) -> str:
        decomposed = unicodedata.normalize("NFD", text)
        return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


_default_normalizer = TextNormalizer()


def normalize_text(text: str) -> str:
    """Normalize text with the shared default normalizer."""
    return _default_normalizer.normalize(text)
