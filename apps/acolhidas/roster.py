"""Roster list filtering for the participant list page."""

ALL = "all"


def filter_roster(participants, search="", status=ALL, group=ALL, waiting_list_only=False):
    """Filter and sort the roster the way the list page shows it.

    `search` matches name, CPF, email or therapist name (case-insensitive).
    `group` is a single group value. `waiting_list_only` keeps participants
    queued for either therapy group.
    """
    needle = (search or "").strip().lower()
    results = []
    for p in participants:
        if status != ALL and p.status != status:
            continue
        if group != ALL and group not in p.groups:
            continue
        if waiting_list_only and not p.is_on_any_waiting_list:
            continue
        if needle and not any(
            needle in (value or "").lower()
            for value in (p.name, p.cpf, p.email, p.therapist_name)
        ):
            continue
        results.append(p)
    results.sort(key=lambda p: p.name.lower())
    return results
