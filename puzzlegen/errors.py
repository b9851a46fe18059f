"""Exception taxonomy for the daily generator."""


class BoardValidationError(ValueError):
    """The input board is not a 9x9 grid of digits."""


class GenerationError(RuntimeError):
    """A stage could not produce a publishable puzzle for the given seed."""


class UniquenessError(GenerationError):
    """Hole punching ended with a puzzle that does not have exactly one solution."""


class BlockAmbiguityError(GenerationError):
    """Every reseeded solution within the retry cap had an ambiguous block layout."""


class CoverageError(GenerationError):
    """Strict pipeline: the search never reached the residue/adjacency target."""


class SearchGenerationError(GenerationError):
    """The search produced no candidate at all."""
