"""
Approximate text matching: the tertiary, most resilient strategy.

Similarity combines three measures on normalised text:

- edit-distance similarity (40%)
- word-set overlap (40%)
- character-bigram Jaccard overlap (20%)

Near-identical strings (combined > 0.6, lengths within 2 characters) get a
0.2 bonus so they beat incidental partial overlaps.

`find_best_match` runs a staged cascade (exact, sliding window, context,
partial words); each stage only runs if the previous ones found nothing
above the threshold.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from textanchor.normalize import similarity_normalize
from textanchor.tree import Span, TreeNode, span_from_offsets, text_content

DEFAULT_THRESHOLD = 0.7

# Windows this short or shorter are never scored
MIN_MATCH_LENGTH = 3

# Multiples of the target length tried by the sliding window, in order
WINDOW_FACTORS = (1.0, 0.8, 0.6, 1.2, 1.5)

# The partial stage accepts matches at this fraction of the threshold
PARTIAL_THRESHOLD_FACTOR = 0.7

EDIT_WEIGHT = 0.4
WORD_WEIGHT = 0.4
BIGRAM_WEIGHT = 0.2
NEAR_IDENTICAL_BONUS = 0.2
NORMALIZED_MATCH_SCORE = 0.95


class MatchStage(str, Enum):
    """Stage of the cascade that produced a match."""

    EXACT = "exact"
    SIMILAR = "similar"
    CONTEXT = "context"
    PARTIAL = "partial"


class Match(BaseModel):
    """
    A candidate location in a haystack string.

    Attributes:
        start: Character offset where the match begins
        end: Character offset where the match ends
        similarity: Similarity to the target (1.0 for exact)
        stage: Cascade stage that found the match
        matched_text: The haystack text that was matched
    """

    start: int
    end: int
    similarity: float
    stage: MatchStage
    matched_text: str = ""


@dataclass(frozen=True)
class MatchContext:
    """Text surrounding the target when it was captured."""

    before: str = ""
    after: str = ""


@dataclass(frozen=True)
class _Profile:
    """Precomputed comparison features of one normalised string."""

    raw: str
    normalized: str
    words: frozenset[str]
    bigrams: frozenset[str]

    @classmethod
    def of(cls, text: str) -> _Profile:
        normalized = similarity_normalize(text).text
        return cls.verbatim(text, normalized)

    @classmethod
    def verbatim(cls, text: str, normalized: str | None = None) -> _Profile:
        """Profile that compares `normalized` (the raw text by default)."""
        if normalized is None:
            normalized = text
        return cls(
            raw=text,
            normalized=normalized,
            words=frozenset(w for w in normalized.split(" ") if w),
            bigrams=frozenset(bigrams(normalized)),
        )


def bigrams(text: str) -> list[str]:
    return [text[i : i + 2] for i in range(len(text) - 1)]


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance with unit costs for insertion, deletion and substitution."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (c1 != c2),
                )
            )
        previous = current
    return previous[-1]


def edit_similarity(s1: str, s2: str) -> float:
    max_length = max(len(s1), len(s2))
    if max_length == 0:
        return 1.0
    return (max_length - levenshtein_distance(s1, s2)) / max_length


def word_similarity(words1: frozenset[str], words2: frozenset[str]) -> float:
    """Dice coefficient over word sets."""
    if not words1 and not words2:
        return 1.0
    if not words1 or not words2:
        return 0.0
    return 2 * len(words1 & words2) / (len(words1) + len(words2))


def bigram_similarity(bigrams1: frozenset[str], bigrams2: frozenset[str]) -> float:
    """Jaccard coefficient over character bigram sets."""
    union = bigrams1 | bigrams2
    if not union:
        return 0.0
    return len(bigrams1 & bigrams2) / len(union)


def _score(a: _Profile, b: _Profile, floor: float = -1.0) -> float:
    """
    Combined similarity of two profiles.

    When `floor` is given and an upper bound on the score cannot exceed it,
    the edit distance is skipped and the bound is returned instead. Callers
    use this only to discard candidates, never to report a score.
    """
    if not a.raw and not b.raw:
        return 1.0
    if not a.raw or not b.raw:
        return 0.0
    if a.raw == b.raw:
        return 1.0
    if not a.normalized and not b.normalized:
        # nothing survives normalisation (punctuation only), compare as written
        a, b = _Profile.verbatim(a.raw), _Profile.verbatim(b.raw)
    if a.normalized == b.normalized:
        return NORMALIZED_MATCH_SCORE

    words = word_similarity(a.words, b.words)
    grams = bigram_similarity(a.bigrams, b.bigrams)
    near = abs(len(a.normalized) - len(b.normalized)) <= 2

    if floor >= 0.0:
        bound = EDIT_WEIGHT + WORD_WEIGHT * words + BIGRAM_WEIGHT * grams
        if near:
            bound += NEAR_IDENTICAL_BONUS
        if min(bound, 1.0) <= floor:
            return min(bound, 1.0)

    combined = (
        EDIT_WEIGHT * edit_similarity(a.normalized, b.normalized)
        + WORD_WEIGHT * words
        + BIGRAM_WEIGHT * grams
    )
    if combined > 0.6 and near:
        return min(combined + NEAR_IDENTICAL_BONUS, 1.0)
    return combined


def calculate_similarity(text1: str, text2: str) -> float:
    """
    Similarity between two strings in [0, 1].

    Returns 1.0 for identical strings (including two empty strings), 0.0
    when exactly one is empty and 0.95 when they only differ in case,
    punctuation or whitespace. Strings made only of punctuation are
    compared as written.
    """
    return _score(_Profile.of(text1), _Profile.of(text2))


class SimilarityMatcher:
    """Locates approximate occurrences of a target string."""

    def __init__(self, threshold: float = DEFAULT_THRESHOLD) -> None:
        self.threshold = threshold

    def calculate_similarity(self, text1: str, text2: str) -> float:
        return calculate_similarity(text1, text2)

    def find_best_match(
        self,
        target: str,
        haystack: str,
        context: MatchContext | None = None,
        threshold: float | None = None,
    ) -> Match | None:
        """
        Find the best approximate occurrence of `target` in `haystack`.

        Stages, each run only while nothing has cleared the threshold:
        1. Exact substring (1.0), then normalised substring (0.95)
        2. Sliding windows at several multiples of the target length
        3. Text following occurrences of the context before the target
        4. Partial word sequences, at a lowered threshold

        Returns:
            The highest-scoring match, or None
        """
        if not target or not haystack:
            return None
        if threshold is None:
            threshold = self.threshold

        profile = _Profile.of(target)
        partial_threshold = threshold * PARTIAL_THRESHOLD_FACTOR
        stages = (
            (lambda: self._find_exact(profile, haystack), threshold),
            (lambda: self._find_similar(profile, haystack, threshold), threshold),
            (
                lambda: self._find_using_context(profile, haystack, context, threshold),
                threshold,
            ),
            (
                lambda: self._find_partial(profile, haystack, partial_threshold),
                partial_threshold,
            ),
        )

        best: Match | None = None
        for find, stage_threshold in stages:
            candidate = find()
            if candidate is not None and candidate.similarity >= stage_threshold:
                if best is None or candidate.similarity > best.similarity:
                    best = candidate
            if best is not None and best.similarity >= threshold:
                return best
        return best

    def find_in_node(
        self,
        node: TreeNode,
        target: str,
        context: MatchContext | None = None,
        threshold: float | None = None,
    ) -> Span | None:
        """Run `find_best_match` over a node's flattened text and return a span."""
        haystack = text_content(node)
        match = self.find_best_match(target, haystack, context, threshold)
        if match is None:
            return None
        return span_from_offsets(node, match.start, match.end)

    def _find_exact(self, profile: _Profile, haystack: str) -> Match | None:
        target = profile.raw
        index = haystack.find(target)
        if index != -1:
            return Match(
                start=index,
                end=index + len(target),
                similarity=1.0,
                stage=MatchStage.EXACT,
                matched_text=target,
            )

        if not profile.normalized:
            return None
        normalized = similarity_normalize(haystack)
        index = normalized.find(profile.normalized)
        if index == -1:
            return None
        start = normalized.to_original(index)
        end = normalized.to_original_end(index + len(profile.normalized))
        return Match(
            start=start,
            end=end,
            similarity=NORMALIZED_MATCH_SCORE,
            stage=MatchStage.EXACT,
            matched_text=haystack[start:end],
        )

    def _find_similar(self, profile: _Profile, haystack: str, threshold: float) -> Match | None:
        length = len(profile.raw)
        sizes: list[int] = []
        for factor in WINDOW_FACTORS:
            size = int(length * factor)
            if size > MIN_MATCH_LENGTH and size not in sizes:
                sizes.append(size)

        best_score = 0.0
        best_range: tuple[int, int] | None = None
        for size in sizes:
            for start in range(len(haystack) - size + 1):
                window = haystack[start : start + size]
                floor = max(best_score, threshold - 1e-9)
                score = _score(profile, _Profile.of(window), floor=floor)
                if score > best_score and score >= threshold:
                    best_score = score
                    best_range = (start, start + size)

        if best_range is None:
            return None
        start, end = best_range
        return Match(
            start=start,
            end=end,
            similarity=best_score,
            stage=MatchStage.SIMILAR,
            matched_text=haystack[start:end],
        )

    def _find_using_context(
        self,
        profile: _Profile,
        haystack: str,
        context: MatchContext | None,
        threshold: float,
    ) -> Match | None:
        if context is None or not context.before:
            return None
        before = similarity_normalize(context.before).text
        if not before:
            return None
        after = similarity_normalize(context.after).text if context.after else ""

        normalized = similarity_normalize(haystack)
        length = len(profile.raw)
        best: Match | None = None

        search_from = 0
        while True:
            index = normalized.find(before, search_from)
            if index == -1:
                break
            search_from = index + 1

            start = normalized.to_original_end(index + len(before))
            while start < len(haystack) and haystack[start].isspace():
                start += 1

            ends = [min(start + length, len(haystack))]
            if after:
                after_index = normalized.find(after, index + len(before))
                if after_index != -1:
                    after_start = normalized.to_original(after_index)
                    if start < after_start <= start + 2 * length:
                        ends.append(after_start)

            for end in ends:
                candidate = haystack[start:end].rstrip()
                if not candidate:
                    continue
                score = _score(profile, _Profile.of(candidate))
                if score >= threshold and (best is None or score > best.similarity):
                    best = Match(
                        start=start,
                        end=start + len(candidate),
                        similarity=score,
                        stage=MatchStage.CONTEXT,
                        matched_text=candidate,
                    )
        return best

    def _find_partial(self, profile: _Profile, haystack: str, threshold: float) -> Match | None:
        target_words = [w for w in profile.raw.split() if w]
        if not target_words:
            return None

        # word tokens with their original character spans
        words: list[tuple[int, int]] = []
        start: int | None = None
        for index, char in enumerate(haystack):
            if char.isspace():
                if start is not None:
                    words.append((start, index))
                    start = None
            elif start is None:
                start = index
        if start is not None:
            words.append((start, len(haystack)))

        min_words = max(1, len(target_words) // 2)
        prefixes = {
            count: _Profile.of(" ".join(target_words[:count]))
            for count in range(min_words, len(target_words) + 1)
        }

        best: Match | None = None
        for i in range(len(words) - min_words + 1):
            for count in range(min_words, min(len(target_words), len(words) - i) + 1):
                first, last = words[i], words[i + count - 1]
                sequence = haystack[first[0] : last[1]]
                score = _score(prefixes[count], _Profile.of(sequence))
                if score < threshold:
                    continue
                # equal scores go to the longer sequence
                if (
                    best is None
                    or score > best.similarity
                    or (score == best.similarity and len(sequence) > len(best.matched_text))
                ):
                    best = Match(
                        start=first[0],
                        end=last[1],
                        similarity=score,
                        stage=MatchStage.PARTIAL,
                        matched_text=sequence,
                    )
        return best
