from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

GENRE_OPTIONS = (
    "文学・評論",
    "人文・思想",
    "社会・政治・法律",
    "ノンフィクション",
    "歴史・地理",
    "ビジネス・経済",
    "投資・金融・会社経営",
    "科学・テクノロジー",
    "医学・薬学・看護学・歯科学",
    "コンピュータ・IT",
    "アート・建築・デザイン",
    "趣味・実用",
    "スポーツ・アウトドア",
    "資格・検定・就職",
    "暮らし・健康・子育て",
    "旅行ガイド・マップ",
    "語学・辞事典・年鑑",
    "英語学習",
    "教育・学参・受験",
    "絵本・児童書",
    "コミック",
    "ライトノベル",
    "ボーイズラブ",
    "タレント写真集",
    "ゲーム攻略本",
    "エンターテイメント",
    "新書・文庫・ノベルス",
    "雑誌",
    "楽譜・スコア・音楽書",
    "カレンダー・手帳",
    "ポスター",
    "古本",
    "古書・希少本",
)

# Declaration order matters: substring matching walks this table top to bottom.
CATEGORY_MAP: Dict[str, str] = {
    # Literature & Fiction
    "Fiction": "文学・評論",
    "Literary Fiction": "文学・評論",
    "Literature": "文学・評論",
    "Literary Criticism": "文学・評論",
    "Poetry": "文学・評論",
    "Drama": "文学・評論",
    # Philosophy & Thought
    "Philosophy": "人文・思想",
    "Psychology": "人文・思想",
    "Religion": "人文・思想",
    "Self-Help": "人文・思想",
    "Body, Mind & Spirit": "人文・思想",
    # Social Science & Politics
    "Social Science": "社会・政治・法律",
    "Political Science": "社会・政治・法律",
    "Law": "社会・政治・法律",
    "True Crime": "社会・政治・法律",
    # Nonfiction
    "Nonfiction": "ノンフィクション",
    "Biography & Autobiography": "ノンフィクション",
    # History & Geography
    "History": "歴史・地理",
    "Travel": "旅行ガイド・マップ",
    # Business & Economics
    "Business & Economics": "ビジネス・経済",
    "Business": "ビジネス・経済",
    "Economics": "ビジネス・経済",
    # Science & Technology
    "Science": "科学・テクノロジー",
    "Technology & Engineering": "科学・テクノロジー",
    "Mathematics": "科学・テクノロジー",
    "Nature": "科学・テクノロジー",
    # Medical
    "Medical": "医学・薬学・看護学・歯科学",
    "Health & Fitness": "暮らし・健康・子育て",
    # Computers & IT
    "Computers": "コンピュータ・IT",
    # Art & Design
    "Art": "アート・建築・デザイン",
    "Architecture": "アート・建築・デザイン",
    "Design": "アート・建築・デザイン",
    "Photography": "アート・建築・デザイン",
    "Music": "楽譜・スコア・音楽書",
    "Performing Arts": "エンターテイメント",
    # Hobbies
    "Crafts & Hobbies": "趣味・実用",
    "Cooking": "趣味・実用",
    "Gardening": "趣味・実用",
    "Games & Activities": "趣味・実用",
    "Humor": "趣味・実用",
    "Pets": "趣味・実用",
    # Sports
    "Sports & Recreation": "スポーツ・アウトドア",
    # Education
    "Education": "教育・学参・受験",
    "Study Aids": "資格・検定・就職",
    "Language Arts & Disciplines": "語学・辞事典・年鑑",
    "Foreign Language Study": "英語学習",
    # Juvenile
    "Juvenile Fiction": "絵本・児童書",
    "Juvenile Nonfiction": "絵本・児童書",
    # Comics
    "Comics & Graphic Novels": "コミック",
    # Young Adult
    "Young Adult Fiction": "ライトノベル",
    "Young Adult Nonfiction": "ライトノベル",
    # Family
    "Family & Relationships": "暮らし・健康・子育て",
    "House & Home": "暮らし・健康・子育て",
    # Reference
    "Reference": "語学・辞事典・年鑑",
    # Antiques
    "Antiques & Collectibles": "古書・希少本",
}

# Keyed by the content digits (last two) of a Japanese C-code.
CCODE_GENRE_MAP: Dict[str, str] = {
    # 1x: philosophy / humanities
    "10": "人文・思想", "11": "人文・思想", "12": "人文・思想",
    "14": "人文・思想", "15": "人文・思想", "16": "人文・思想",
    # 2x: history / geography
    "20": "歴史・地理", "21": "歴史・地理", "22": "歴史・地理",
    "23": "歴史・地理", "26": "旅行ガイド・マップ",
    # 3x: social science / business / education
    "30": "社会・政治・法律", "31": "社会・政治・法律",
    "32": "社会・政治・法律", "36": "社会・政治・法律",
    "33": "ビジネス・経済", "34": "ビジネス・経済",
    "37": "教育・学参・受験",
    # 4x: natural science / medicine
    "40": "科学・テクノロジー", "41": "科学・テクノロジー",
    "42": "科学・テクノロジー", "43": "科学・テクノロジー",
    "44": "科学・テクノロジー", "45": "科学・テクノロジー",
    "47": "医学・薬学・看護学・歯科学", "49": "医学・薬学・看護学・歯科学",
    # 5x: engineering / IT / living
    "50": "科学・テクノロジー", "51": "科学・テクノロジー",
    "52": "科学・テクノロジー", "53": "科学・テクノロジー",
    "54": "科学・テクノロジー",
    "55": "コンピュータ・IT",
    "58": "暮らし・健康・子育て", "59": "暮らし・健康・子育て",
    # 6x: industry
    "60": "ビジネス・経済", "61": "ビジネス・経済",
    "63": "ビジネス・経済",
    # 7x: arts / entertainment / sports / comics
    "70": "アート・建築・デザイン", "71": "アート・建築・デザイン",
    "72": "アート・建築・デザイン", "73": "アート・建築・デザイン",
    "74": "アート・建築・デザイン", "75": "アート・建築・デザイン",
    "76": "楽譜・スコア・音楽書",
    "77": "エンターテイメント",
    "78": "スポーツ・アウトドア",
    "79": "コミック",
    # 8x: language
    "80": "語学・辞事典・年鑑", "81": "語学・辞事典・年鑑",
    "82": "英語学習", "83": "英語学習", "84": "英語学習",
    "85": "英語学習", "86": "英語学習", "87": "英語学習",
    "88": "英語学習", "89": "英語学習",
    # 9x: literature
    "90": "文学・評論", "91": "文学・評論", "92": "文学・評論",
    "93": "文学・評論", "95": "文学・評論", "97": "文学・評論",
    "98": "絵本・児童書",
}

CCODE_SCHEME_ID = "78"


def map_category_to_genre(categories: Iterable[str]) -> str:
    """
    Map free-form provider categories to one GENRE_OPTIONS label.

    Each category is tried in order: exact (case-sensitive) key first, then a
    case-insensitive "key contained in category" scan in table order. With no
    hit at all the first category is returned unchanged.
    """
    cats: List[str] = [str(c) for c in categories]
    for cat in cats:
        if cat in CATEGORY_MAP:
            return CATEGORY_MAP[cat]
        lowered = cat.lower()
        for key, value in CATEGORY_MAP.items():
            if key.lower() in lowered:
                return value
    return cats[0] if cats else ""


def genre_from_ccode(subjects: Iterable[Mapping[str, object]]) -> str:
    for sub in subjects:
        if not isinstance(sub, Mapping):
            continue
        if str(sub.get("SubjectSchemeIdentifier") or "") != CCODE_SCHEME_ID:
            continue
        code = str(sub.get("SubjectCode") or "")
        if len(code) >= 4:
            genre = CCODE_GENRE_MAP.get(code[-2:])
            if genre:
                return genre
    return ""


def is_known_genre(label: str) -> bool:
    return label in GENRE_OPTIONS
