from haulbook.utils.money import clean_zero, parse_decimal, quantize_money, quantize_to, safe_div, to_decimal

__all__ = ["clean_zero", "parse_decimal", "quantize_money", "quantize_to", "safe_div", "to_decimal"]
