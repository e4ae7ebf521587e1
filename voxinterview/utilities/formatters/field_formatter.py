def format_dict_key_to_camel_case(dict_key: str) -> str:
    """Turn a snake_case field name into its camelCase wire alias (``star_score`` -> ``starScore``)."""
    head, *rest = dict_key.split("_")
    return head + "".join(word.capitalize() for word in rest)
