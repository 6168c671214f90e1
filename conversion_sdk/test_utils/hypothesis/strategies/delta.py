from typing import Dict, List, Set

from hypothesis import strategies as st

from conversion_sdk.common.incremental.models import (
    AddAction,
    DeletionVector,
    RemoveAction,
)

# Kinds of log entries a single data file can get within one version
PLAIN_ADD = "plain_add"
PLAIN_REMOVE = "plain_remove"
DELETION_VECTOR_PAIR = "deletion_vector_pair"
ORPHAN_DELETION_VECTOR = "orphan_deletion_vector"

file_name_strategy = st.integers(min_value=0, max_value=10_000).map(
    lambda i: f"part-{i:05d}.snappy.parquet"
)

deletion_vector_strategy = st.builds(
    lambda storage_type, path_or_inline_dv, offset, size_in_bytes, cardinality: DeletionVector(
        storage_type=storage_type,
        path_or_inline_dv=path_or_inline_dv,
        offset=offset,
        size_in_bytes=size_in_bytes,
        cardinality=cardinality,
    ),
    storage_type=st.sampled_from(["u", "p", "i"]),
    path_or_inline_dv=st.text(
        alphabet=st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
        min_size=1,
        max_size=20,
    ),
    offset=st.one_of(st.none(), st.integers(min_value=0, max_value=1 << 20)),
    size_in_bytes=st.integers(min_value=1, max_value=1 << 16),
    cardinality=st.integers(min_value=1, max_value=1000),
)

entry_kind_strategy = st.sampled_from(
    [PLAIN_ADD, PLAIN_REMOVE, DELETION_VECTOR_PAIR, ORPHAN_DELETION_VECTOR]
)


@st.composite
def version_actions(draw) -> Dict[str, object]:
    """Actions of one version together with the file sets they should yield.

    Every data file gets exactly one kind of entry. The action list is
    shuffled, so Remove/Add pairs may appear in either order.
    """
    names = draw(st.sets(file_name_strategy, min_size=0, max_size=12))
    actions: List[object] = []
    expected_added: Set[str] = set()
    expected_removed: Set[str] = set()
    expected_anomalies: Set[str] = set()

    for name in sorted(names):
        kind = draw(entry_kind_strategy)
        size = draw(st.integers(min_value=1, max_value=1 << 30))
        if kind == PLAIN_ADD:
            actions.append(AddAction(path=name, size=size))
            expected_added.add(name)
        elif kind == PLAIN_REMOVE:
            actions.append(RemoveAction(path=name, size=size))
            expected_removed.add(name)
        elif kind == DELETION_VECTOR_PAIR:
            actions.append(RemoveAction(path=name, size=size))
            actions.append(
                AddAction(
                    path=name,
                    size=size,
                    deletion_vector=draw(deletion_vector_strategy),
                )
            )
        else:
            actions.append(
                AddAction(
                    path=name,
                    size=size,
                    deletion_vector=draw(deletion_vector_strategy),
                )
            )
            expected_added.add(name)
            expected_anomalies.add(name)

    return {
        "actions": draw(st.permutations(actions)),
        "added": expected_added,
        "removed": expected_removed,
        "anomalies": expected_anomalies,
    }


# Raw commit timestamps as found in commitInfo; duplicates and regressions included
raw_commit_millis_strategy = st.lists(
    st.integers(min_value=1_600_000_000_000, max_value=1_600_000_100_000),
    min_size=1,
    max_size=15,
)
