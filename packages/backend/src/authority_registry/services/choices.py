"""Choice authority — person suggestions for metadata entry forms.

Learn: when a depositor types an author name, the submission UI asks for
candidate persons. The lookup runs a fixed sequence of increasingly fuzzy
searches and merges them, so exact matches always rank first:

1. exact first + last            4. like first + last
2. exact, first/last swapped     5. like on the whole name, either order
3. like (swapped)

Duplicates across searches are dropped (by uid). Confidence reflects how
many distinct persons matched.
"""

from enum import Enum
from typing import Optional

import structlog

from authority_registry.context import RequestContext
from authority_registry.db.models import AuthorityPerson
from authority_registry.errors import NotFound
from authority_registry.repositories.cursor import EntityCursor
from authority_registry.repositories.person import PersonRepository
from authority_registry.schemas.authority import Choice, ChoicesRead, LabelRead

logger = structlog.get_logger()

BEST_MATCH_LIMIT = 5


class Confidence(str, Enum):
    NOT_FOUND = "notfound"
    UNCERTAIN = "uncertain"
    AMBIGUOUS = "ambiguous"


def _capitalize(word: str) -> str:
    word = word.strip()
    return word[:1].upper() + word[1:]


def repair_text(text: str) -> str:
    """Normalize "jan novak" / "novak, jan" into "Jan, Novak" / "Novak, Jan"."""
    comma_parts = text.split(", ")
    space_parts = text.split(" ")
    if len(comma_parts) == 1 and len(space_parts) == 2:
        return f"{_capitalize(space_parts[0])}, {_capitalize(space_parts[1])}"
    if len(comma_parts) == 2:
        return f"{_capitalize(comma_parts[0])}, {_capitalize(comma_parts[1])}"
    return text


def split_person_name(name: str) -> tuple[str, str]:
    """"Last, First" -> (last, first); without a comma the last word is the last name."""
    if "," in name:
        last, first = name.split(",", 1)
        return last.strip(), first.strip()
    words = name.split()
    if len(words) < 2:
        return name.strip(), ""
    return words[-1], " ".join(words[:-1])


class ChoiceAuthority:
    def __init__(self, ctx: RequestContext):
        self.ctx = ctx
        self.persons = PersonRepository(ctx)

    def _searches(self, name: str) -> list[EntityCursor[AuthorityPerson]]:
        last, first = split_person_name(name)
        return [
            self.persons.find_by_name(first, last),
            self.persons.find_by_name(last, first),
            self.persons.find_like_name(last, first),
            self.persons.find_like_name(first, last),
            self.persons.find_like_full_name(f"{last} {first}".strip()),
        ]

    async def get_matches(self, text: str, start: int = 0, limit: int = 20) -> ChoicesRead:
        name = repair_text(text)
        seen: set[str] = set()
        matches: list[AuthorityPerson] = []
        more = False

        async with self.ctx.transaction("choices", text=text):
            for search in self._searches(name):
                async with search as cursor:
                    async for person in cursor:
                        if person.uid in seen:
                            continue
                        if len(matches) >= start + limit:
                            more = True
                            break
                        seen.add(person.uid)
                        matches.append(person)
                if more:
                    break

        window = matches[start:]
        total = len(matches)
        if total == 0:
            confidence = Confidence.NOT_FOUND
        elif total == 1:
            confidence = Confidence.UNCERTAIN
        else:
            confidence = Confidence.AMBIGUOUS

        logger.debug("choices.matched", text=text, total=total, more=more)
        return ChoicesRead(
            values=[
                Choice(authority=p.uid, label=p.name, value=p.name) for p in window
            ],
            start=start,
            total=total,
            confidence=confidence.value,
            more=more,
        )

    async def get_best_match(self, text: str) -> ChoicesRead:
        return await self.get_matches(text, 0, BEST_MATCH_LIMIT)

    async def get_label(self, uid: str) -> LabelRead:
        async with self.ctx.transaction("label", uid=uid):
            person: Optional[AuthorityPerson] = await self.persons.find_by_uid(uid)
            if person is None:
                raise NotFound(f"Authority person {uid} not found")
            return LabelRead(uid=uid, label=person.name)
