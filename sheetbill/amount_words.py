# Amount chargeable in words, Indian numbering (crore / lakh / thousand / hundred).

from sheetbill.money import round_half_away, to_float

_ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
_TEENS = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
          "Seventeen", "Eighteen", "Nineteen"]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def _two(n):
    if n < 10: return _ONES[n]
    if n < 20: return _TEENS[n - 10]
    return _TENS[n // 10] + ((" " + _ONES[n % 10]) if n % 10 else "")


def number_words(n):
    """Words for a whole number >= 0; 105 -> 'One Hundred and Five', 0 -> ''."""
    if n == 0:
        return ""
    crore, n = divmod(n, 10000000)
    lakh, n = divmod(n, 100000)
    thousand, n = divmod(n, 1000)
    hundred, rest = divmod(n, 100)

    parts = []
    # crore can itself run past 99 ("One Hundred Crore")
    if crore:    parts.append(number_words(crore) + " Crore")
    if lakh:     parts.append(_two(lakh) + " Lakh")
    if thousand: parts.append(_two(thousand) + " Thousand")
    if hundred:  parts.append(_ONES[hundred] + " Hundred")
    if rest:     parts.append(("and " if parts else "") + _two(rest))
    return " ".join(parts)


def amount_in_words(amount, only=False):
    """1062.5 -> 'One Thousand and Sixty Two Rupees and Fifty Paise'.

    Paise are the fraction rounded to two places. A zero amount reads
    'Zero Rupees'; `only=True` appends the statutory 'Only'.
    """
    v = to_float(amount)
    total_paise = int(round_half_away(round_half_away(abs(v), 2) * 100))
    rupees, paise = divmod(total_paise, 100)

    if rupees == 0 and paise == 0:
        words = "Zero Rupees"
    else:
        words = ""
        if rupees:
            words += number_words(rupees) + " Rupees"
        if paise:
            words += (" and " if words else "") + number_words(paise) + " Paise"
        if v < 0:
            words = "Minus " + words
    return words + " Only" if only else words
