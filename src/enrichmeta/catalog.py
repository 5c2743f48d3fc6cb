"""
The pathway catalog consumed by the enrichment and pathway network engines.

Classes
-------
PathwayCatalog
    Validated mapping of KEGG pathways to their names and member compounds.
"""

from __future__ import annotations

import logging
from itertools import chain
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Union

from pydantic import BaseModel, ValidationError

from enrichmeta.constants import (
    CATALOG_DEFS,
    CATALOG_LEGACY_KEYS,
    KEGG_PREFIXES,
)
from enrichmeta.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class PathwayCatalog:
    """
    A catalog of pathways, their display names and their member compounds.

    The catalog is built once (usually by `enrichmeta.ingestion.kegg.get_kegg_data`)
    and treated as read-only by every analysis which consumes it. The order in
    which pathways were supplied is preserved and defines the iteration order used
    when breaking ties between equally significant pathways and when ordering the
    members of a pathway pair.

    Parameters
    ----------
    pathway_names : Mapping[str, str]
        Pathway ID -> display name (e.g., {"hsa00010": "Glycolysis / Gluconeogenesis"})
    pathway_compounds : Mapping[str, Iterable[str]]
        Pathway ID -> member compound IDs (e.g., {"hsa00010": ["C00022", "C00031"]})
    compound_names : Optional[Mapping[str, str]]
        Compound ID -> names (e.g., {"C00022": "Pyruvate; Pyruvic acid"})

    Attributes
    ----------
    pathway_names : Dict[str, str]
        Pathway display names keyed by pathway ID.
    pathway_compounds : Dict[str, FrozenSet[str]]
        Member compounds keyed by pathway ID.
    compound_names : Dict[str, str]
        Compound names keyed by compound ID. May be empty.

    Properties
    ----------
    background : FrozenSet[str]
        All compounds which are members of at least one pathway.
    pathway_ids : List[str]
        Pathway IDs in catalog order.

    Public Methods
    --------------
    ensure(catalog: Union[PathwayCatalog, Mapping[str, Any]]) -> PathwayCatalog:
        Return a PathwayCatalog, building one from a dict if needed.
    from_dict(pathway_data: Mapping[str, Any]) -> PathwayCatalog:
        Build a catalog from a loosely-typed pathway_data structure.
    get_name(pathway_id: str) -> str:
        Get a pathway's display name, falling back to its ID.
    subset(pathway_ids: Iterable[str]) -> PathwayCatalog:
        Restrict the catalog to a subset of pathways.
    to_dict() -> Dict[str, Any]:
        JSON-serializable representation of the catalog.

    Raises
    ------
    ConfigurationError
        If a required mapping is missing or malformed, if no pathway has any
        member compounds, or if two pathway IDs are identical once their
        "path:" prefix is removed.

    Examples
    --------
    >>> catalog = PathwayCatalog(
    ...     pathway_names={"P1": "Pathway 1", "P2": "Pathway 2"},
    ...     pathway_compounds={"P1": ["C1", "C2", "C3"], "P2": ["C2", "C3", "C4"]},
    ... )
    >>> len(catalog.background)
    4
    """

    def __init__(
        self,
        pathway_names: Mapping[str, str],
        pathway_compounds: Mapping[str, Iterable[str]],
        compound_names: Optional[Mapping[str, str]] = None,
    ):
        validated = _validate_catalog(
            {
                CATALOG_DEFS.PATHWAY_NAMES: pathway_names,
                CATALOG_DEFS.PATHWAY_COMPOUNDS: _listify_members(pathway_compounds),
                CATALOG_DEFS.COMPOUND_NAMES: (
                    {} if compound_names is None else compound_names
                ),
            }
        )

        self.pathway_names: Dict[str, str] = _strip_pathway_prefixes(
            validated.pathway_names, CATALOG_DEFS.PATHWAY_NAMES
        )
        self.pathway_compounds: Dict[str, FrozenSet[str]] = {
            k: frozenset(v)
            for k, v in _strip_pathway_prefixes(
                validated.pathway_compounds, CATALOG_DEFS.PATHWAY_COMPOUNDS
            ).items()
        }
        self.compound_names: Dict[str, str] = dict(validated.compound_names)

        if len(self.background) == 0:
            raise ConfigurationError(
                f"Invalid pathway catalog - {CATALOG_DEFS.PATHWAY_COMPOUNDS} is empty; "
                "at least one pathway with member compounds is required"
            )

        missing_names = [
            pid for pid in self.pathway_compounds if pid not in self.pathway_names
        ]
        if missing_names:
            logger.debug(
                f"{len(missing_names)} pathways lack a display name and will be labelled by their ID"
            )

    def __contains__(self, pathway_id: object) -> bool:
        return pathway_id in self.pathway_compounds

    def __len__(self) -> int:
        return len(self.pathway_compounds)

    def __repr__(self) -> str:
        return (
            f"PathwayCatalog({len(self.pathway_compounds)} pathways, "
            f"{len(self.background)} compounds)"
        )

    @property
    def background(self) -> FrozenSet[str]:
        """All compounds which belong to at least one pathway."""
        return frozenset(chain.from_iterable(self.pathway_compounds.values()))

    @property
    def pathway_ids(self) -> List[str]:
        """Pathway IDs in catalog order."""
        return list(self.pathway_compounds.keys())

    @classmethod
    def ensure(
        cls, catalog: Union["PathwayCatalog", Mapping[str, Any]]
    ) -> "PathwayCatalog":
        """
        Ensure the input is a PathwayCatalog.

        Parameters
        ----------
        catalog : Union[PathwayCatalog, Mapping[str, Any]]
            A catalog or a pathway_data dict accepted by `from_dict`

        Returns
        -------
        PathwayCatalog
        """
        if isinstance(catalog, cls):
            return catalog
        if isinstance(catalog, Mapping):
            return cls.from_dict(catalog)
        raise ConfigurationError(
            f"pathway catalog must be a PathwayCatalog or a dict, got {type(catalog).__name__}"
        )

    @classmethod
    def from_dict(cls, pathway_data: Mapping[str, Any]) -> "PathwayCatalog":
        """
        Build a catalog from a loosely-typed pathway_data structure.

        Accepts the key spellings used by earlier releases of the KEGG cache
        (e.g., `pathways` + `pathway2compound` or `pathscpds`) as well as the
        keys written by `to_dict`.

        Parameters
        ----------
        pathway_data : Mapping[str, Any]
            Dict containing pathway names, pathway members and, optionally,
            compound names.

        Returns
        -------
        PathwayCatalog

        Raises
        ------
        ConfigurationError
            If the pathway names or pathway members are missing.
        """
        if not isinstance(pathway_data, Mapping):
            raise ConfigurationError(
                f"pathway_data must be a dict, got {type(pathway_data).__name__}"
            )

        resolved = {}
        for field, aliases in CATALOG_LEGACY_KEYS.items():
            present = [a for a in aliases if a in pathway_data]
            if len(present) == 0:
                resolved[field] = None
                continue
            if len(present) > 1:
                logger.warning(
                    f"pathway_data contains multiple keys for {field}: {present}. Using {present[0]}"
                )
            resolved[field] = pathway_data[present[0]]

        for field in [CATALOG_DEFS.PATHWAY_NAMES, CATALOG_DEFS.PATHWAY_COMPOUNDS]:
            if resolved[field] is None:
                raise ConfigurationError(
                    f"pathway_data is missing the required {field} mapping. "
                    f"Expected one of the keys: {CATALOG_LEGACY_KEYS[field]}. "
                    f"Found keys: {list(pathway_data.keys())}"
                )

        return cls(
            pathway_names=resolved[CATALOG_DEFS.PATHWAY_NAMES],
            pathway_compounds=resolved[CATALOG_DEFS.PATHWAY_COMPOUNDS],
            compound_names=resolved[CATALOG_DEFS.COMPOUND_NAMES],
        )

    def get_name(self, pathway_id: str) -> str:
        """Get a pathway's display name, using the ID when no name is known."""
        return self.pathway_names.get(pathway_id, pathway_id)

    def subset(self, pathway_ids: Iterable[str]) -> "PathwayCatalog":
        """
        Restrict the catalog to a subset of pathways.

        Parameters
        ----------
        pathway_ids : Iterable[str]
            Pathways to retain. The returned catalog follows this order.
            Unknown IDs are logged and dropped.

        Returns
        -------
        PathwayCatalog
            A new catalog; compound names are carried over unchanged.

        Raises
        ------
        ConfigurationError
            If none of the pathway IDs are in the catalog.
        """
        if isinstance(pathway_ids, str):
            pathway_ids = [pathway_ids]

        valid_ids = _filter_known_pathways(pathway_ids, self)

        return PathwayCatalog(
            pathway_names={
                pid: self.pathway_names[pid]
                for pid in valid_ids
                if pid in self.pathway_names
            },
            pathway_compounds={pid: self.pathway_compounds[pid] for pid in valid_ids},
            compound_names=self.compound_names,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-serializable representation of the catalog.

        Returns
        -------
        Dict[str, Any]
            Dict with pathway_names, pathway_compounds (sorted lists) and compound_names.
        """
        return {
            CATALOG_DEFS.PATHWAY_NAMES: dict(self.pathway_names),
            CATALOG_DEFS.PATHWAY_COMPOUNDS: {
                pid: sorted(members) for pid, members in self.pathway_compounds.items()
            },
            CATALOG_DEFS.COMPOUND_NAMES: dict(self.compound_names),
        }


class _PathwayCatalogValidator(BaseModel):
    """Validate the structure of a pathway catalog.

    Attributes
    ----------
    pathway_names : Dict[str, str]
        Pathway ID -> display name
    pathway_compounds : Dict[str, Set[str]]
        Pathway ID -> member compound IDs
    compound_names : Dict[str, str]
        Compound ID -> compound names
    """

    pathway_names: Dict[str, str]
    pathway_compounds: Dict[str, Set[str]]
    compound_names: Dict[str, str] = {}


def _filter_known_pathways(
    pathway_ids: Iterable[str], catalog: PathwayCatalog
) -> List[str]:
    """De-duplicate pathway IDs (keeping first occurrences) and drop IDs absent from the catalog."""

    unique_ids = list(dict.fromkeys(pathway_ids))
    invalid_ids = [pid for pid in unique_ids if pid not in catalog]
    if invalid_ids:
        logger.warning(
            f"{len(invalid_ids)} pathway ID(s) were not found in the pathway catalog and will be ignored: {invalid_ids}"
        )

    return [pid for pid in unique_ids if pid in catalog]


def _listify_members(pathway_compounds: Any) -> Any:
    """Convert member collections to lists so sets, tuples and arrays validate alike."""

    if not isinstance(pathway_compounds, Mapping):
        return pathway_compounds

    out = {}
    for pid, members in pathway_compounds.items():
        if isinstance(members, str):
            # a bare string would otherwise be split into characters
            out[pid] = [members]
        elif isinstance(members, Iterable):
            out[pid] = list(members)
        else:
            out[pid] = members
    return out


def _strip_prefix(identifier: str, prefix: str) -> str:
    if identifier.startswith(prefix):
        return identifier[len(prefix) :]
    return identifier


def _strip_pathway_prefixes(mapping: Mapping[str, Any], field: str) -> Dict[str, Any]:
    """Remove "path:" from pathway IDs, refusing IDs which collide once stripped."""

    stripped = {}
    collisions = []
    for k, v in mapping.items():
        pid = _strip_prefix(k, KEGG_PREFIXES.PATHWAY)
        if pid in stripped:
            collisions.append(pid)
        stripped[pid] = v

    if collisions:
        raise ConfigurationError(
            f"Invalid pathway catalog - {field} contains {len(collisions)} pathway ID(s) "
            f"listed both with and without the {KEGG_PREFIXES.PATHWAY} prefix: {collisions}"
        )

    return stripped


def _validate_catalog(catalog_dict: Dict[str, Any]) -> _PathwayCatalogValidator:
    """Validate a catalog dict, converting pydantic errors into ConfigurationErrors."""

    try:
        return _PathwayCatalogValidator(**catalog_dict)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid pathway catalog - {problems}") from e
