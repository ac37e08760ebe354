"""
Flat type rows → Level → Domain → Standard → Type tree.

Pure functions, no I/O. Node order follows first occurrence in the input;
types inside a standard are sorted by type_code so display order is stable.
"""

from typing import Dict, Iterable, List, Tuple

from taxonomy.labels import domain_label, level_label
from taxonomy.schemas import (
    DomainNode, DuplicateTypeCodeError, LevelNode, StandardNode, TypeRecord,
)

TypePath = Tuple[str, str, str]


def build_type_tree(types: Iterable[TypeRecord]) -> List[LevelNode]:
    """
    Group type records by (level_code, domain_code, standard_code).

    Args:
        types: Active type records, typically ordered by type_code

    Returns:
        Level nodes in first-occurrence order; every record appears exactly once

    Raises:
        DuplicateTypeCodeError: if a type_code occurs more than once
    """
    levels: Dict[str, LevelNode] = {}
    domains: Dict[Tuple[str, str], DomainNode] = {}
    standards: Dict[TypePath, StandardNode] = {}
    seen: Dict[str, TypePath] = {}
    duplicates: List[str] = []

    for t in types:
        if t.type_code in seen:
            duplicates.append(t.type_code)
            continue
        path = (t.level_code, t.domain_code, t.standard_code)
        seen[t.type_code] = path

        level = levels.get(t.level_code)
        if level is None:
            level = LevelNode(
                level_code=t.level_code,
                label=level_label(t.level_code, t.subject),
                school_level=t.school_level,
            )
            levels[t.level_code] = level
        level.type_count += 1

        domain_key = (t.level_code, t.domain_code)
        domain = domains.get(domain_key)
        if domain is None:
            domain = DomainNode(domain_code=t.domain_code, label=domain_label(t.domain_code, t.area))
            domains[domain_key] = domain
            level.domains.append(domain)
            level.domain_count += 1
        domain.type_count += 1

        standard = standards.get(path)
        if standard is None:
            standard = StandardNode(
                standard_code=t.standard_code,
                standard_content=t.standard_content or "",
            )
            standards[path] = standard
            domain.standards.append(standard)
            domain.standard_count += 1
        standard.type_count += 1
        standard.types.append(t)

    if duplicates:
        raise DuplicateTypeCodeError(duplicates)

    for standard in standards.values():
        standard.types.sort(key=lambda r: r.type_code)

    return list(levels.values())


def flatten_tree(tree: Iterable[LevelNode]) -> List[TypeRecord]:
    """Inverse of build_type_tree, modulo order."""
    return [
        t
        for level in tree
        for domain in level.domains
        for standard in domain.standards
        for t in standard.types
    ]


def index_paths(tree: Iterable[LevelNode]) -> Dict[str, TypePath]:
    """type_code → (level_code, domain_code, standard_code), built once per tree."""
    return {
        t.type_code: (level.level_code, domain.domain_code, standard.standard_code)
        for level in tree
        for domain in level.domains
        for standard in domain.standards
        for t in standard.types
    }


def count_standards(types: Iterable[TypeRecord]) -> int:
    return len({t.standard_code for t in types})
