import decimal

###############################################################
# constants

NAN = decimal.Decimal("NaN")

ZERO = decimal.Decimal(0)
ONE = decimal.Decimal(1)

########################
# helper funcs


def to_decimal(value):
    """Convert ints, strings and floats to Decimal. Floats go through str() so 0.1 stays 0.1."""
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"cannot convert bool ({value}) to a vote count")
    if isinstance(value, float):
        return decimal.Decimal(str(value))
    return decimal.Decimal(value)


def smallest_unit(decimal_places):
    # 10^-decimal_places, which is 1 when decimal_places is 0
    return ONE.scaleb(-decimal_places)


def round_down(value, decimal_places):
    return value.quantize(smallest_unit(decimal_places), rounding=decimal.ROUND_DOWN)


def round_up(value, decimal_places):
    return value.quantize(smallest_unit(decimal_places), rounding=decimal.ROUND_UP)


def decimal2float(stat, round_places=3):
    """Convert any decimal objects used internally into float for reporting.

    Args:
        stat (any): Any value.

    Returns:
        any type not Decimal: If the stat passed is type Decimal, it is converted to float.
    """

    if isinstance(stat, decimal.Decimal):
        return round(float(stat), round_places)
    else:
        return stat


def list_to_sentence_with_quotes(lst):
    """
    Join names into a readable, quoted list.

    ['A'] -> '"A"', ['A', 'B'] -> '"A" and "B"', ['A', 'B', 'C'] -> '"A", "B", and "C"'
    """
    if len(lst) == 1:
        return f'"{lst[0]}"'
    if len(lst) == 2:
        return f'"{lst[0]}" and "{lst[1]}"'
    return ", ".join(f'"{i}"' for i in lst[:-1]) + f', and "{lst[-1]}"'
