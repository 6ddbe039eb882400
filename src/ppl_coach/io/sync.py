"""
History merge rule for exchanging sessions with the companion device.

Only the data contract lives here; discovery and transport are handled by
the pairing client.
"""

import copy
from datetime import datetime
from typing import Mapping

from ..core.models import History, SessionRecord


def _logged_time(record: SessionRecord) -> float:
    """Timestamp of a record for ordering; unparseable -> epoch."""
    try:
        return datetime.fromisoformat(record.logged_at.replace("Z", "+00:00")).timestamp()
    except (ValueError, AttributeError):
        return 0.0


def merge_records(local: SessionRecord, remote: SessionRecord) -> SessionRecord:
    """
    Merge two records for the same date at the exercise-key level.

    Keys present on one side are kept.  For keys on both sides, and for the
    metadata, the record with the later logged_at wins; ties go to remote.
    """
    newer, older = (remote, local) if _logged_time(remote) >= _logged_time(local) else (local, remote)
    sets = {k: list(v) for k, v in older.sets.items()}
    sets.update({k: list(v) for k, v in newer.sets.items()})
    return SessionRecord(
        sets=sets,
        logged_at=newer.logged_at,
        week_number=newer.week_number,
        workout_type=newer.workout_type or older.workout_type,
    )


def merge_histories(local: Mapping[str, SessionRecord], remote: Mapping[str, SessionRecord]) -> History:
    """
    Combine two histories.

    Dates on only one side are taken as-is; dates on both are merged with
    merge_records.
    """
    merged: History = {d: copy.deepcopy(r) for d, r in local.items()}
    for date_key, remote_record in remote.items():
        local_record = local.get(date_key)
        if local_record is None:
            merged[date_key] = copy.deepcopy(remote_record)
        else:
            merged[date_key] = merge_records(local_record, remote_record)
    return merged


def sessions_to_upload(
    local: Mapping[str, SessionRecord], remote: Mapping[str, SessionRecord]
) -> list[str]:
    """Date keys the remote lacks or holds an older record for, sorted."""
    return sorted(
        d
        for d, record in local.items()
        if d not in remote or _logged_time(record) > _logged_time(remote[d])
    )
