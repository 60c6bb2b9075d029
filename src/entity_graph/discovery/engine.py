"""Worklist discovery of the person <-> place co-occurrence graph.

Two frontiers are drained alternately: a person is sent to the people oracle
and every uppercase token in the reply becomes a place; a place is sent to the
places oracle and every token becomes a person. Each key is queried at most
once per run. The loop stops when both frontiers are empty or the iteration
cap is hit, so it terminates whatever the oracle returns.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from entity_graph.clients.base import OracleClient
from entity_graph.normalize import DEFAULT_RULES, InflectionRules, normalize
from entity_graph.tokens import Seeds, extract_seeds, extract_upper_tokens

logger = logging.getLogger(__name__)

DEFAULT_SEED_PERSONS = ("BARBARA", "ALEKSANDER", "RAFAL")
DEFAULT_PLACE_HINTS = {"KRAKOW": "KRAKOW", "WARSZAW": "WARSZAWA"}


@dataclass(frozen=True, slots=True)
class DiscoveryConfig:
    max_iterations: int = 300
    # Tokens shorter than this are recorded but never queued as persons.
    min_person_len: int = 4
    rules: InflectionRules = DEFAULT_RULES


@dataclass(slots=True)
class DiscoverySummary:
    target: str
    target_location: str | None
    places_with_pair: list[str]
    third_associate: str | None
    seen_with: list[str]
    iterations: int
    queries: int


@dataclass
class DiscoveryRun:
    """All state owned by one discovery run."""

    target: str
    seed_places: frozenset[str] = frozenset()
    rules: InflectionRules = DEFAULT_RULES
    person_queue: deque[str] = field(default_factory=deque)
    place_queue: deque[str] = field(default_factory=deque)
    visited_persons: set[str] = field(default_factory=set)
    visited_places: set[str] = field(default_factory=set)
    places_by_person: dict[str, set[str]] = field(default_factory=dict)
    people_by_place: dict[str, set[str]] = field(default_factory=dict)
    target_location: str | None = None
    iterations: int = 0
    queries: list[tuple[str, str]] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return not self.person_queue and not self.place_queue

    def enqueue_person(self, key: str) -> bool:
        if key in self.visited_persons or key in self.person_queue:
            return False
        self.person_queue.append(key)
        return True

    def enqueue_place(self, key: str) -> bool:
        if key in self.visited_places or key in self.place_queue:
            return False
        self.place_queue.append(key)
        return True

    # --- derived queries ---

    def places_with_all(self, *persons: str) -> list[str]:
        """Places where every one of `persons` was seen."""
        keys = {normalize(p, "person", rules=self.rules) for p in persons}
        return [place for place, people in self.people_by_place.items() if keys <= people]

    def third_associate(self, a: str, b: str) -> str | None:
        """First other person seen at a place shared by `a` and `b`."""
        keys = {normalize(x, "person", rules=self.rules) for x in (a, b)}
        for place in self.places_with_all(*keys):
            for person in sorted(self.people_by_place[place] - keys):
                return person
        return None

    def seen_with(self, person: str) -> set[str]:
        """Everyone ever co-located with `person`."""
        key = normalize(person, "person", rules=self.rules)
        out: set[str] = set()
        for people in self.people_by_place.values():
            if key in people:
                out |= people
        out.discard(key)
        return out

    def summary(self, pair: tuple[str, str], companion: str) -> DiscoverySummary:
        return DiscoverySummary(
            target=self.target,
            target_location=self.target_location,
            places_with_pair=self.places_with_all(*pair),
            third_associate=self.third_associate(*pair),
            seen_with=sorted(self.seen_with(companion)),
            iterations=self.iterations,
            queries=len(self.queries),
        )


class DiscoveryEngine:
    def __init__(
        self,
        people: OracleClient,
        places: OracleClient,
        config: DiscoveryConfig | None = None,
    ):
        self.people = people
        self.places = places
        self.config = config or DiscoveryConfig()

    def start(self, seeds: Seeds, target: str) -> DiscoveryRun:
        rules = self.config.rules
        run = DiscoveryRun(
            target=normalize(target, "person", rules=rules),
            seed_places=frozenset(normalize(p, "place") for p in seeds.places),
            rules=rules,
        )
        for p in seeds.persons:
            run.enqueue_person(normalize(p, "person", rules=rules))
        for p in seeds.places:
            run.enqueue_place(normalize(p, "place"))
        return run

    def run(self, seeds: Seeds, target: str) -> DiscoveryRun:
        run = self.start(seeds, target)
        logger.info(
            f"Discovery start: {len(run.person_queue)} persons, {len(run.place_queue)} places queued"
        )
        while run.iterations < self.config.max_iterations and not run.exhausted:
            self.step(run)

        if run.exhausted:
            logger.info(f"Discovery finished after {run.iterations} iterations (frontiers empty)")
        else:
            logger.warning(
                f"Discovery stopped at iteration cap {self.config.max_iterations} "
                f"with {len(run.person_queue)} persons and {len(run.place_queue)} places pending"
            )
        if run.target_location is None:
            logger.warning(f"No new location found for {run.target}")
        return run

    def step(self, run: DiscoveryRun) -> None:
        """One iteration: at most one person and one place query."""
        run.iterations += 1
        if run.person_queue:
            person = normalize(run.person_queue.popleft(), "person", rules=self.config.rules)
            self._visit_person(run, person)
        if run.place_queue:
            self._visit_place(run, normalize(run.place_queue.popleft(), "place"))

    def _ask(self, oracle: OracleClient, kind: str, key: str, run: DiscoveryRun) -> list[str]:
        run.queries.append((kind, key))
        logger.info(f"[{kind}] query {key}")
        try:
            reply = oracle.query(key)
        except Exception as e:
            logger.warning(f"[{kind}] query for {key} failed: {e}")
            return []
        logger.debug(f"[{kind}] reply for {key}: {reply!r}")
        return extract_upper_tokens(reply)

    def _visit_person(self, run: DiscoveryRun, person: str) -> None:
        if person in run.visited_persons:
            return
        run.visited_persons.add(person)
        places = run.places_by_person.setdefault(person, set())
        for token in self._ask(self.people, "people", person, run):
            place = normalize(token, "place")
            run.enqueue_place(place)
            places.add(place)

    def _visit_place(self, run: DiscoveryRun, place: str) -> None:
        if place in run.visited_places:
            return
        run.visited_places.add(place)
        people = run.people_by_place.setdefault(place, set())
        for token in self._ask(self.places, "places", place, run):
            person = normalize(token, "person", rules=self.config.rules)
            if len(person) >= self.config.min_person_len:
                run.enqueue_person(person)
            people.add(person)

        if (
            run.target in people
            and place not in run.seed_places
            and run.target_location is None
        ):
            run.target_location = place
            logger.info(f"Found candidate location for {run.target}: {place}")


def seeds_from_note(
    note: str,
    *,
    seed_persons: Iterable[str] = DEFAULT_SEED_PERSONS,
    place_hints: dict[str, str] | None = None,
    rules: InflectionRules = DEFAULT_RULES,
) -> Seeds:
    return extract_seeds(
        note,
        seed_persons=seed_persons,
        place_hints=DEFAULT_PLACE_HINTS if place_hints is None else place_hints,
        rules=rules,
    )
