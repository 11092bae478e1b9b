"""City detection for free-text chat messages.

Looks for a known city name in what the user typed (or dictated) so the
assistant can fetch weather for the place being asked about. Two tables:

1. Romanized city names, matched case-insensitively on word boundaries.
2. Japanese (kanji / hiragana / katakana) names mapped to the English name
   OpenWeatherMap understands, matched as substrings.

Longer names are tried first so "東大阪" wins over "大阪" and
"kansas city" over "kansas".
"""

from __future__ import annotations

import re

# Aliases that should not be title-cased as-is
_ROMANIZED_ALIASES: dict[str, str] = {
    "nyc": "New York",
    "la": "Los Angeles",
    "okinawa": "Naha",
    "ho chi minh city": "Ho Chi Minh City",
    "sao paulo": "Sao Paulo",
    "rio de janeiro": "Rio de Janeiro",
}

_COMMON_CITIES: tuple[str, ...] = (
    # Japan
    "tokyo", "osaka", "kyoto", "yokohama", "kobe", "nagoya", "fukuoka", "sapporo",
    "sendai", "hiroshima", "nara", "okinawa", "naha", "kanazawa", "nagasaki",
    "kagoshima", "shizuoka", "kumamoto", "okayama", "niigata", "hamamatsu",
    "sagamihara", "chiba", "saitama", "kawasaki", "kitakyushu", "sakai",
    # North America
    "new york", "nyc", "los angeles", "chicago", "houston", "phoenix",
    "philadelphia", "san antonio", "san diego", "dallas", "san jose", "austin",
    "jacksonville", "fort worth", "columbus", "san francisco", "charlotte",
    "indianapolis", "seattle", "denver", "washington", "boston", "el paso",
    "nashville", "detroit", "oklahoma city", "portland", "las vegas", "memphis",
    "louisville", "baltimore", "milwaukee", "albuquerque", "tucson", "fresno",
    "sacramento", "atlanta", "kansas city", "miami", "raleigh", "omaha",
    "long beach", "virginia beach", "oakland", "minneapolis", "tulsa", "arlington",
    "tampa", "new orleans", "wichita", "cleveland", "bakersfield", "honolulu",
    "toronto", "vancouver", "montreal", "ottawa", "calgary", "mexico city",
    # Europe
    "london", "paris", "berlin", "madrid", "rome", "kyiv", "bucharest", "vienna",
    "hamburg", "warsaw", "budapest", "barcelona", "munich", "milan", "prague",
    "sofia", "brussels", "birmingham", "cologne", "naples", "stockholm", "turin",
    "marseille", "amsterdam", "zagreb", "valencia", "krakow", "frankfurt",
    "seville", "zaragoza", "athens", "riga", "helsinki", "rotterdam", "stuttgart",
    "dusseldorf", "glasgow", "copenhagen", "dublin", "lisbon", "manchester",
    "geneva", "zurich", "oslo", "edinburgh", "reykjavik",
    # Asia / Middle East
    "beijing", "shanghai", "seoul", "bangkok", "singapore", "jakarta", "delhi",
    "mumbai", "manila", "taipei", "hanoi", "ho chi minh city", "kuala lumpur",
    "hong kong", "dubai", "istanbul", "dhaka", "karachi", "riyadh", "tel aviv",
    "doha", "abu dhabi",
    # Oceania
    "sydney", "melbourne", "brisbane", "perth", "adelaide", "auckland",
    "wellington", "christchurch",
    # South America / Africa
    "sao paulo", "buenos aires", "rio de janeiro", "bogota", "lima", "santiago",
    "caracas", "cairo", "lagos", "kinshasa", "johannesburg", "cape town",
    "casablanca", "nairobi", "addis ababa",
)

# Single-character names (津, つ) and kana readings that occur inside
# ordinary words (ちば in いちばん, こうふ in こうふく) are left out.
_JAPANESE_NAMES: dict[str, str] = {
    "東京": "Tokyo", "とうきょう": "Tokyo", "東京都": "Tokyo",
    "大阪": "Osaka", "おおさか": "Osaka", "大阪市": "Osaka",
    "横浜": "Yokohama", "よこはま": "Yokohama",
    "名古屋": "Nagoya", "なごや": "Nagoya",
    "札幌": "Sapporo", "さっぽろ": "Sapporo",
    "福岡": "Fukuoka", "ふくおか": "Fukuoka",
    "神戸": "Kobe", "こうべ": "Kobe",
    "京都": "Kyoto", "きょうと": "Kyoto",
    "川崎": "Kawasaki", "かわさき": "Kawasaki",
    "さいたま": "Saitama",
    "広島": "Hiroshima", "ひろしま": "Hiroshima",
    "仙台": "Sendai", "せんだい": "Sendai",
    "北九州": "Kitakyushu", "きたきゅうしゅう": "Kitakyushu",
    "千葉": "Chiba",
    "新潟": "Niigata", "にいがた": "Niigata",
    "浜松": "Hamamatsu", "はままつ": "Hamamatsu",
    "熊本": "Kumamoto", "くまもと": "Kumamoto",
    "相模原": "Sagamihara", "さがみはら": "Sagamihara",
    "静岡": "Shizuoka", "しずおか": "Shizuoka",
    "岡山": "Okayama", "おかやま": "Okayama",
    "鹿児島": "Kagoshima", "かごしま": "Kagoshima",
    "八王子": "Hachioji", "はちおうじ": "Hachioji",
    "姫路": "Himeji", "ひめじ": "Himeji",
    "宇都宮": "Utsunomiya", "うつのみや": "Utsunomiya",
    "松山": "Matsuyama", "まつやま": "Matsuyama",
    "東大阪": "Higashiosaka", "ひがしおおさか": "Higashiosaka",
    "西宮": "Nishinomiya", "にしのみや": "Nishinomiya",
    "尼崎": "Amagasaki", "あまがさき": "Amagasaki",
    "船橋": "Funabashi", "ふなばし": "Funabashi",
    "金沢": "Kanazawa", "かなざわ": "Kanazawa",
    "豊田": "Toyota", "とよた": "Toyota",
    "高松": "Takamatsu", "たかまつ": "Takamatsu",
    "富山": "Toyama", "とやま": "Toyama",
    "長崎": "Nagasaki", "ながさき": "Nagasaki",
    "岐阜": "Gifu",
    "宮崎": "Miyazaki", "みやざき": "Miyazaki",
    "長野": "Nagano", "ながの": "Nagano",
    "和歌山": "Wakayama", "わかやま": "Wakayama",
    "奈良": "Nara",
    "大分": "Oita", "おおいた": "Oita",
    "旭川": "Asahikawa", "あさひかわ": "Asahikawa",
    "いわき": "Iwaki",
    "高知": "Kochi", "こうち": "Kochi",
    "高崎": "Takasaki", "たかさき": "Takasaki",
    "郡山": "Koriyama", "こおりやま": "Koriyama",
    "那覇": "Naha",
    "川越": "Kawagoe", "かわごえ": "Kawagoe",
    "秋田": "Akita", "あきた": "Akita",
    "大津": "Otsu", "おおつ": "Otsu",
    "越谷": "Koshigaya", "こしがや": "Koshigaya",
    "前橋": "Maebashi", "まえばし": "Maebashi",
    "四日市": "Yokkaichi", "よっかいち": "Yokkaichi",
    "盛岡": "Morioka", "もりおか": "Morioka",
    "久留米": "Kurume", "くるめ": "Kurume",
    "春日井": "Kasugai", "かすがい": "Kasugai",
    "青森": "Aomori", "あおもり": "Aomori",
    "明石": "Akashi", "あかし": "Akashi",
    "函館": "Hakodate", "はこだて": "Hakodate",
    "福島": "Fukushima", "ふくしま": "Fukushima",
    "水戸": "Mito",
    "福井": "Fukui", "ふくい": "Fukui",
    "甲府": "Kofu",
    "徳島": "Tokushima", "とくしま": "Tokushima",
    "松江": "Matsue", "まつえ": "Matsue",
    "鳥取": "Tottori", "とっとり": "Tottori",
    "山口": "Yamaguchi", "やまぐち": "Yamaguchi",
    "佐賀": "Saga",
    "ソウル": "Seoul", "北京": "Beijing", "上海": "Shanghai",
    "バンコク": "Bangkok", "シンガポール": "Singapore", "台北": "Taipei",
    "香港": "Hong Kong", "マニラ": "Manila", "ジャカルタ": "Jakarta",
    "クアラルンプール": "Kuala Lumpur", "ハノイ": "Hanoi",
    "ホーチミン": "Ho Chi Minh City",
    "ニューデリー": "New Delhi", "デリー": "Delhi", "ムンバイ": "Mumbai",
    "ドバイ": "Dubai", "イスタンブール": "Istanbul",
    "ニューヨーク": "New York", "ロサンゼルス": "Los Angeles",
    "シカゴ": "Chicago", "ヒューストン": "Houston", "フェニックス": "Phoenix",
    "フィラデルフィア": "Philadelphia", "サンアントニオ": "San Antonio",
    "サンディエゴ": "San Diego", "ダラス": "Dallas", "サンノゼ": "San Jose",
    "サンフランシスコ": "San Francisco", "シアトル": "Seattle",
    "ワシントン": "Washington", "ボストン": "Boston", "ラスベガス": "Las Vegas",
    "マイアミ": "Miami", "アトランタ": "Atlanta", "ホノルル": "Honolulu",
    "バンクーバー": "Vancouver", "トロント": "Toronto", "モントリオール": "Montreal",
    "メキシコシティ": "Mexico City",
    "ロンドン": "London", "パリ": "Paris", "ベルリン": "Berlin",
    "マドリード": "Madrid", "ローマ": "Rome", "アムステルダム": "Amsterdam",
    "ウィーン": "Vienna", "ダブリン": "Dublin", "ブリュッセル": "Brussels",
    "リスボン": "Lisbon", "チューリッヒ": "Zurich", "ジュネーブ": "Geneva",
    "プラハ": "Prague", "ブダペスト": "Budapest", "ワルシャワ": "Warsaw",
    "アテネ": "Athens", "ストックホルム": "Stockholm", "オスロ": "Oslo",
    "コペンハーゲン": "Copenhagen", "ヘルシンキ": "Helsinki", "モスクワ": "Moscow",
    "バルセロナ": "Barcelona", "ミラノ": "Milan", "ミュンヘン": "Munich",
    "シドニー": "Sydney", "メルボルン": "Melbourne", "ブリスベン": "Brisbane",
    "パース": "Perth", "オークランド": "Auckland", "ウェリントン": "Wellington",
    "サンパウロ": "Sao Paulo", "リオデジャネイロ": "Rio de Janeiro",
    "ブエノスアイレス": "Buenos Aires", "リマ": "Lima", "サンティアゴ": "Santiago",
    "カイロ": "Cairo", "ヨハネスブルグ": "Johannesburg", "ケープタウン": "Cape Town",
    "ナイロビ": "Nairobi", "ラゴス": "Lagos",
}

# "LA" matches only in capitals
_ROMANIZED_PATTERN = re.compile(
    r"\b("
    + "|".join(re.escape(c) for c in sorted(set(_COMMON_CITIES), key=len, reverse=True))
    + r"|(?-i:LA)"
    + r")\b",
    re.IGNORECASE,
)

_JAPANESE_KEYS: tuple[str, ...] = tuple(sorted(_JAPANESE_NAMES, key=len, reverse=True))


def _display_name(city: str) -> str:
    """Return the OpenWeatherMap-friendly name for a romanized match."""
    city = city.lower()
    return _ROMANIZED_ALIASES.get(city, city.title())


def detect_city(text: str) -> str | None:
    """Find the first known city mentioned in a message.

    Args:
        text: Free text typed or dictated by the user.

    Returns:
        English city name (e.g., "Osaka"), or None if no city is mentioned.
    """
    if not text:
        return None

    match = _ROMANIZED_PATTERN.search(text)
    if match:
        return _display_name(match.group(1))

    for key in _JAPANESE_KEYS:
        if key in text:
            return _JAPANESE_NAMES[key]
    return None
