"""
Airline display names for IATA carrier codes
"""

AIRLINE_NAMES = {
    # North America
    "AA": "American Airlines",
    "DL": "Delta Air Lines",
    "UA": "United Airlines",
    "AS": "Alaska Airlines",
    "B6": "JetBlue Airways",
    "WN": "Southwest Airlines",
    "F9": "Frontier Airlines",
    "NK": "Spirit Airlines",
    "AC": "Air Canada",
    "HA": "Hawaiian Airlines",
    "AM": "Aeromexico",

    # Europe
    "BA": "British Airways",
    "AF": "Air France",
    "LH": "Lufthansa",
    "KL": "KLM Royal Dutch Airlines",
    "IB": "Iberia",
    "LX": "Swiss International Air Lines",
    "OS": "Austrian Airlines",
    "SN": "Brussels Airlines",
    "TP": "TAP Air Portugal",
    "TK": "Turkish Airlines",
    "VS": "Virgin Atlantic",
    "AY": "Finnair",
    "SK": "SAS Scandinavian Airlines",
    "LO": "LOT Polish Airlines",
    "EI": "Aer Lingus",
    "FR": "Ryanair",
    "U2": "easyJet",
    "VY": "Vueling",
    "W6": "Wizz Air",

    # Middle East, Asia, Pacific, Africa
    "EK": "Emirates",
    "QR": "Qatar Airways",
    "EY": "Etihad Airways",
    "SQ": "Singapore Airlines",
    "CX": "Cathay Pacific",
    "JL": "Japan Airlines",
    "NH": "All Nippon Airways",
    "KE": "Korean Air",
    "OZ": "Asiana Airlines",
    "QF": "Qantas",
    "NZ": "Air New Zealand",
    "TG": "Thai Airways",
    "ET": "Ethiopian Airlines",
    "SA": "South African Airways",
    "LA": "LATAM Airlines",

    # Amadeus sandbox
    "6X": "Amadeus IT Group (Test)",
}


def airline_name(code: str) -> str:
    """Airline name for ``code``, or the code itself when unknown"""
    return AIRLINE_NAMES.get(code.upper(), code)


def format_airline_display(code: str) -> str:
    """Format as "AA - American Airlines", or just the code when unknown"""
    code = code.upper()
    name = airline_name(code)
    if name == code:
        return code
    return f"{code} - {name}"
