"""
Gemini prompts and response schemas for the comment analysis pipeline

Prompts stay compact: comments go out as ``[index] text`` lines and the
model answers with one-letter keys to keep token usage low.
"""

# Topic taxonomy, index order is what the model answers with
CATEGORIES = (
    '角色与演员表现',      # T1 characters & acting
    '文化共鸣与道德价值',  # T2 cultural resonance & moral values
    '怀旧情感与童年回忆',  # T3 nostalgia & childhood memories
    '剧情与艺术价值',      # T4 plot & artistic value
    '语言与配音翻译',      # T5 language, dubbing & subtitles
    '版本对比与比较',      # T6 comparison between versions
)
UNCLASSIFIED = '未分类'
DEFAULT_KEYWORD = '评论'

SENTIMENT_CODES = {
    '1': 'positive',
    '0': 'neutral',
    '-1': 'negative',
}

SOURCE_LANGUAGE = 'Vietnamese'
TARGET_LANGUAGE = 'Simplified Chinese'

TRANSLATION_PROMPT = """Translate each {source} comment into {target}.
Answer with JSON: [{{"i": index, "t": "translation"}}]

{lines}"""

CATEGORY_GUIDE = """0 = {c0}: characters (Sun Wukong, Tang Sanzang, Zhu Bajie, Sha Wujing...), actors, acting, supporting roles
1 = {c1}: moral values, philosophy, Confucian/Buddhist/Taoist ideas, tradition, education
2 = {c2}: childhood memories, nostalgia, growing up with the show, passing of time
3 = {c3}: plot, storytelling, production quality, music, effects, costumes, directing
4 = {c4}: dubbing, voices, lines, translation, subtitles, dialects, language versions
5 = {c5}: comparing the 1986 version, remakes, films, animations or the novel
Sarcastic or critical remarks are not category 1.""".format(
    **{f'c{i}': name for i, name in enumerate(CATEGORIES)}
)

CLASSIFICATION_PROMPT = """Classify the main topic of each comment. Pick the single best matching category (0-5).
Answer with JSON: [{{"i": index, "c": category}}]

{guide}

{lines}"""

SENTIMENT_TOPIC_PROMPT = """Analyze the sentiment and the main topic of each comment.
Answer with JSON: [{{"i": index, "s": sentiment, "c": category}}]

Sentiment (s): "1" = positive, "0" = neutral, "-1" = negative

Topic (c), pick the single best matching category (0-5):
{guide}

{lines}"""

WORD_FREQUENCY_PROMPT = """Extract the high-frequency keywords of these comments and count how often each occurs.
Answer with JSON: [{{"w": "word", "n": count}}]

Rules:
1. Ignore punctuation, emoji and stop words (的, 了, 是, 在...)
2. Segment Chinese text into words and keep only meaningful keywords of 2-4 characters
3. Useful keywords include character names, acting, emotions (怀念, 童年, 经典), artistic terms and versions (86版, 新版, 翻拍)

{lines}"""

TRANSLATION_SCHEMA = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'i': {'type': 'INTEGER'},
            't': {'type': 'STRING'},
        },
        'required': ['i', 't'],
    },
}

CLASSIFICATION_SCHEMA = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'i': {'type': 'INTEGER'},
            'c': {'type': 'INTEGER'},
        },
        'required': ['i', 'c'],
    },
}

SENTIMENT_TOPIC_SCHEMA = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'i': {'type': 'INTEGER'},
            's': {'type': 'STRING', 'format': 'enum', 'enum': ['1', '0', '-1']},
            'c': {'type': 'INTEGER'},
        },
        'required': ['i', 's', 'c'],
    },
}

WORD_FREQUENCY_SCHEMA = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'w': {'type': 'STRING'},
            'n': {'type': 'INTEGER'},
        },
        'required': ['w', 'n'],
    },
}


def format_lines(items):
    return '\n'.join(f"[{item.index}] {item.content}" for item in items)


def get_translation_prompt(items):
    return TRANSLATION_PROMPT.format(source=SOURCE_LANGUAGE, target=TARGET_LANGUAGE, lines=format_lines(items))


def get_classification_prompt(items):
    return CLASSIFICATION_PROMPT.format(guide=CATEGORY_GUIDE, lines=format_lines(items))


def get_sentiment_topic_prompt(items):
    return SENTIMENT_TOPIC_PROMPT.format(guide=CATEGORY_GUIDE, lines=format_lines(items))


def get_word_frequency_prompt(texts):
    return WORD_FREQUENCY_PROMPT.format(lines='\n'.join(texts))
