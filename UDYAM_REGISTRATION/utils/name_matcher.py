from core.config import NAME_MATCH_THRESHOLD


def normalize_name(name: str) -> str:
    return " ".join(name.upper().strip().split())


def name_match_ratio(submitted: str, on_record: str) -> float:
    """Share of submitted words that overlap (substring either way) a word on record,
    relative to the shorter of the two names."""
    n1 = normalize_name(submitted)
    n2 = normalize_name(on_record)
    if n1 == n2:
        return 1.0

    input_words = n1.split(" ")
    record_words = n2.split(" ")
    matching = [
        word for word in input_words
        if any(record_word in word or word in record_word for record_word in record_words)
    ]
    return len(matching) / min(len(input_words), len(record_words))


def names_match(submitted: str, on_record: str) -> bool:
    return name_match_ratio(submitted, on_record) >= NAME_MATCH_THRESHOLD
