from typing import Dict, Optional, Tuple

# "City, CC" -> (latitude, longitude)
PORT_COORDINATES: Dict[str, Tuple[float, float]] = {
    "Atlanta, US": (33.749, -84.388),
    "Savannah, US": (32.0809, -81.0912),
    "Charleston, US": (32.7765, -79.9311),
    "Houston, US": (29.7604, -95.3698),
    "Los Angeles, US": (33.7405, -118.272),
    "New York, US": (40.7128, -74.006),
    "Rotterdam, NL": (51.9225, 4.47917),
    "Antwerp, BE": (51.2194, 4.4025),
    "Hamburg, DE": (53.5511, 9.9937),
    "Valencia, ES": (39.4699, -0.3763),
    "Santos, BR": (-23.9608, -46.3336),
    "Buenos Aires, AR": (-34.6037, -58.3816),
    "Valparaiso, CL": (-33.0472, -71.6127),
    "Veracruz, MX": (19.1738, -96.1342),
    "Shanghai, CN": (31.2304, 121.4737),
    "Hong Kong, HK": (22.3193, 114.1694),
    "Busan, KR": (35.1796, 129.0756),
    "Tokyo, JP": (35.6762, 139.6503),
    "Ho Chi Minh City, VN": (10.8231, 106.6297),
    "Manila, PH": (14.5995, 120.9842),
    "Singapore, SG": (1.3521, 103.8198),
    "Dubai, AE": (25.2048, 55.2708),
    "Jeddah, SA": (21.4858, 39.1925),
    "Durban, ZA": (-29.8587, 31.0218),
    "Lagos, NG": (6.5244, 3.3792),
    "Luanda, AO": (-8.839, 13.2894),
    "Sydney, AU": (-33.8688, 151.2093),
}


def resolve_port(name: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Coordinates for a port name, or None when the name is not in the table.
    Matching ignores surrounding whitespace and letter case.
    """
    if not name:
        return None
    key = name.strip().casefold()
    for port, coords in PORT_COORDINATES.items():
        if port.casefold() == key:
            return coords
    return None
