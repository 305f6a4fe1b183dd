# reclassifier/classifier/category_tree.py
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from reclassifier.data_models import Category, DataQualityIssue, ResolvedCategory


logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "


def walk_parent_path(category_id: str, parents: Mapping[str, Optional[str]]) -> List[str]:
    """
    Путь от корня до category_id по ссылкам parent.

    Если id повторился (цикл в данных), обход останавливается и возвращается
    накопленный путь. Родитель, которого нет в таблице, обрывает путь.
    """
    chain: List[str] = []
    visited: Set[str] = set()
    current: Optional[str] = category_id

    while current is not None and current in parents and current not in visited:
        visited.add(current)
        chain.append(current)
        current = parents[current]

    chain.reverse()
    return chain


def find_parent_cycles(parents: Mapping[str, Optional[str]]) -> List[Tuple[str, ...]]:
    """
    Все циклы в ссылках parent, каждый ровно один раз, в порядке обнаружения.
    Цикл возвращается начиная с узла, на котором обход в него вошёл.
    """
    cycles: List[Tuple[str, ...]] = []
    seen: Set[frozenset] = set()

    for start in parents:
        chain: List[str] = []
        positions: Dict[str, int] = {}
        current: Optional[str] = start

        while current is not None and current in parents:
            if current in positions:
                cycle = tuple(chain[positions[current]:])
                key = frozenset(cycle)
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle)
                break
            positions[current] = len(chain)
            chain.append(current)
            current = parents[current]

    return cycles


class CategoryTree:
    """
    Неизменяемый снимок таксономии на один прогон.

    Строится один раз и передаётся во все функции классификации по ссылке.
    Порядок `categories` совпадает с порядком входной коллекции: от него
    зависит разрешение ничьих в скорере и выбор "первого кандидата" в правилах.
    """

    def __init__(
        self,
        categories: Tuple[ResolvedCategory, ...],
        issues: Tuple[DataQualityIssue, ...] = (),
    ) -> None:
        self._categories = categories
        self._by_id = MappingProxyType({c.id: c for c in categories})
        self._issues = issues

    @classmethod
    def build(
        cls,
        categories: Iterable[Category],
        known_issues: Iterable[DataQualityIssue] = (),
    ) -> "CategoryTree":
        """
        known_issues: проблемы, найденные ещё при разборе выгрузки (битые записи);
        попадают в снимок перед проблемами самого дерева.
        """
        issues: List[DataQualityIssue] = list(known_issues)

        # 1) голые записи в таблицу по id
        bare: Dict[str, Category] = {}
        for cat in categories:
            if not cat.name:
                issues.append(
                    DataQualityIssue("missing-name", cat.id, "category excluded from tree")
                )
                continue
            if cat.id in bare:
                issues.append(
                    DataQualityIssue("duplicate-id", cat.id, "later duplicate ignored")
                )
                continue
            bare[cat.id] = cat

        parents = {cid: cat.parent for cid, cat in bare.items()}

        for cid, cat in bare.items():
            if cat.parent is not None and cat.parent not in bare:
                issues.append(
                    DataQualityIssue(
                        "missing-parent", cid, f"parent {cat.parent} not found"
                    )
                )

        for cycle in find_parent_cycles(parents):
            detail = " -> ".join(cycle + (cycle[0],))
            issues.append(DataQualityIssue("parent-cycle", cycle[0], detail))
            logger.warning("Cycle in category parent links: %s", detail)

        # 2) путь от корня для каждой категории
        resolved: List[ResolvedCategory] = []
        for cid, cat in bare.items():
            path = walk_parent_path(cid, parents)
            names = tuple(bare[pid].name for pid in path)
            full_name = PATH_SEPARATOR.join(names) if names else cat.name
            resolved.append(
                ResolvedCategory(
                    id=cid,
                    name=cat.name,
                    slug=cat.slug,
                    parent=cat.parent,
                    level=cat.level,
                    full_path=tuple(path),
                    full_path_names=names,
                    full_name=full_name,
                )
            )

        if issues:
            logger.info("Category snapshot built with %s data quality issues", len(issues))

        return cls(tuple(resolved), tuple(issues))

    @property
    def categories(self) -> Tuple[ResolvedCategory, ...]:
        return self._categories

    @property
    def by_id(self) -> Mapping[str, ResolvedCategory]:
        return self._by_id

    @property
    def issues(self) -> Tuple[DataQualityIssue, ...]:
        return self._issues

    def get(self, category_id: Optional[str]) -> Optional[ResolvedCategory]:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def __iter__(self) -> Iterator[ResolvedCategory]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)
