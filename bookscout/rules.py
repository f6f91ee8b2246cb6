"""Vocabularies and curated tables driving query planning and scoring.

Everything here is plain data: the planner and scorer only iterate over these
tables, so tuning a rule means editing a list, not control flow.
"""

from dataclasses import dataclass, field

from bookscout.models import Source


@dataclass(frozen=True)
class KnownWork:
    title: str
    authors: tuple[str, ...] = ()
    bonus: int = 80


@dataclass(frozen=True)
class TopicCategory:
    """A technical area with canonical search terms and landmark books."""

    triggers: tuple[str, ...]
    variants_zh: tuple[str, ...]
    variants_en: tuple[str, ...]
    english_terms: tuple[str, ...] = ()
    known_works: tuple[KnownWork, ...] = ()


@dataclass(frozen=True)
class Genre:
    """A fiction sub-genre."""

    triggers: tuple[str, ...]
    title_terms: tuple[str, ...] = ()
    category_terms: tuple[str, ...] = ()
    variants_zh: tuple[str, ...] = ()
    variants_en: tuple[str, ...] = ()
    douban_variants: tuple[str, ...] = ()
    known_authors: tuple[str, ...] = ()
    known_works: tuple[KnownWork, ...] = field(default_factory=tuple)


# --- query analysis -------------------------------------------------------

FICTION_QUERY_TERMS = (
    "小说", "小說", "文学", "名著", "故事", "散文", "诗歌", "诗集",
    "科幻", "奇幻", "悬疑", "推理", "言情", "武侠", "玄幻", "历史小说",
    "fiction", "novel", "literature", "story", "stories", "poetry",
    "fantasy", "mystery", "thriller", "romance", "sci-fi",
)

THEORETICAL_QUERY_TERMS = (
    "原理", "底层", "理论", "设计", "实现", "架构", "内幕", "源码",
    "深入理解", "深入", "内核", "本质", "机制", "不是使用", "不是教程",
    "principles", "internals", "design", "implementation", "architecture",
    "in-depth", "mechanism", "kernel", "theory",
)

PRACTICAL_QUERY_TERMS = (
    "实战", "教程", "入门", "使用", "项目", "实践", "开发",
    "practical", "hands-on", "tutorial", "beginner", "project", "cookbook",
)

# Multi-word terms that must survive filler and stop-word removal intact.
PROTECTED_COMPOUNDS = (
    "机器学习", "深度学习", "强化学习", "自然语言处理", "计算机视觉",
    "操作系统", "数据结构", "计算机网络", "编译原理", "数据库原理",
    "深入理解", "设计模式", "科幻小说", "推理小说",
    "machine learning", "deep learning", "reinforcement learning",
    "natural language processing", "computer vision", "data structures",
    "operating systems", "computer networks", "design patterns",
    "science fiction", "artificial intelligence",
)

FILLER_WORDS = (
    "全栈开发者", "开发者", "程序员", "工程师", "我想", "了解", "编程背景",
    "一些", "相关的", "最好是", "帮我", "请",
    "i want to", "i'd like", "looking for", "please", "can you",
)

STOP_WORDS = frozenset({
    "的", "是", "了", "在", "和", "与", "或", "有", "这", "那",
    "什么", "怎么", "如何", "一本", "几本", "推荐", "书籍", "书",
    "好", "最", "想", "找", "要", "相关", "类似",
    "the", "a", "an", "is", "are", "of", "to", "in", "for", "on", "with",
    "about", "book", "books", "recommend", "want", "find", "some", "best",
    "good", "me", "my", "and", "or", "learn", "read", "i",
    "like", "similar", "please",
})

GENERIC_MODIFIERS = frozenset({
    "热门", "推荐", "经典", "最新", "畅销",
    "popular", "recommended", "classic", "classics", "best", "bestselling", "top",
})

EDUCATIONAL_QUERY_TERMS = ("教程", "入门", "实战", "指南", "基础", "学习")
TUTORIAL_SUFFIX_ZH = "入门教程"

# --- technical topics -----------------------------------------------------

TOPIC_CATEGORIES: dict[str, TopicCategory] = {
    "ai": TopicCategory(
        triggers=("ai", "人工智能", "机器学习", "深度学习", "machine learning",
                  "deep learning", "artificial intelligence", "neural network"),
        variants_zh=("机器学习 周志华", "深度学习 花书", "统计学习方法 李航",
                     "动手学深度学习", "机器学习实战"),
        variants_en=("Deep Learning Goodfellow", "Hands-On Machine Learning Géron",
                     "Machine Learning Mitchell", "Artificial Intelligence Modern Approach",
                     "Pattern Recognition Bishop"),
        english_terms=("machine learning", "artificial intelligence", "deep learning"),
        known_works=(
            KnownWork("Deep Learning", ("Ian Goodfellow", "Yoshua Bengio"), 100),
            KnownWork("深度学习", ("花书", "Ian Goodfellow"), 100),
            KnownWork("Machine Learning", ("Tom Mitchell", "Tom M. Mitchell"), 95),
            KnownWork("Hands-On Machine Learning", ("Aurélien Géron",), 90),
            KnownWork("机器学习实战", ("Peter Harrington",), 85),
            KnownWork("Pattern Recognition", ("Christopher Bishop",), 85),
            KnownWork("统计学习方法", ("李航",), 90),
            KnownWork("机器学习", ("周志华", "西瓜书"), 95),
            KnownWork("Python Machine Learning", ("Sebastian Raschka",), 80),
            KnownWork("Artificial Intelligence: A Modern Approach",
                      ("Stuart Russell", "Peter Norvig"), 95),
            KnownWork("人工智能：一种现代方法", ("Stuart Russell",), 95),
            KnownWork("Neural Networks and Deep Learning", ("Michael Nielsen",), 80),
            KnownWork("动手学深度学习", ("李沐", "Aston Zhang"), 90),
            KnownWork("Dive into Deep Learning", ("Aston Zhang",), 90),
            KnownWork("百面机器学习", ("葫芦娃",), 80),
            KnownWork("Machine Learning Yearning", ("Andrew Ng", "吴恩达"), 85),
        ),
    ),
    "python": TopicCategory(
        triggers=("python",),
        variants_zh=("Python编程从入门到实践", "流畅的Python", "Python Cookbook"),
        variants_en=("Python Crash Course Matthes", "Fluent Python Ramalho",
                     "Effective Python Slatkin", "Learning Python Lutz"),
        known_works=(
            KnownWork("Python编程：从入门到实践", ("Eric Matthes",), 90),
            KnownWork("Python Crash Course", ("Eric Matthes",), 90),
            KnownWork("流畅的Python", ("Luciano Ramalho",), 95),
            KnownWork("Fluent Python", ("Luciano Ramalho",), 95),
            KnownWork("Python Cookbook", ("David Beazley",), 85),
            KnownWork("Effective Python", ("Brett Slatkin",), 85),
            KnownWork("Learning Python", ("Mark Lutz",), 80),
        ),
    ),
    "javascript": TopicCategory(
        triggers=("javascript", "js", "前端"),
        variants_zh=("JavaScript高级程序设计", "你不知道的JavaScript", "JavaScript权威指南"),
        variants_en=("JavaScript The Good Parts", "You Don't Know JS",
                     "Eloquent JavaScript", "Professional JavaScript"),
        known_works=(
            KnownWork("JavaScript高级程序设计", ("Nicholas Zakas", "红宝书"), 95),
            KnownWork("Professional JavaScript", ("Nicholas Zakas",), 95),
            KnownWork("JavaScript权威指南", ("David Flanagan", "犀牛书"), 90),
            KnownWork("JavaScript: The Good Parts", ("Douglas Crockford",), 85),
            KnownWork("你不知道的JavaScript", ("Kyle Simpson",), 90),
            KnownWork("You Don't Know JS", ("Kyle Simpson",), 90),
            KnownWork("Eloquent JavaScript", ("Marijn Haverbeke",), 85),
        ),
    ),
    "algorithm": TopicCategory(
        triggers=("算法", "algorithm", "数据结构", "data structures"),
        variants_zh=("算法导论", "剑指Offer", "编程珠玑", "算法 第4版"),
        variants_en=("Introduction to Algorithms CLRS", "Algorithms Sedgewick",
                     "Programming Pearls", "Cracking the Coding Interview"),
        english_terms=("algorithms", "data structures"),
        known_works=(
            KnownWork("算法导论", ("Thomas Cormen", "CLRS"), 100),
            KnownWork("Introduction to Algorithms", ("Thomas Cormen", "Thomas H. Cormen"), 100),
            KnownWork("算法", ("Robert Sedgewick",), 90),
            KnownWork("Algorithms", ("Robert Sedgewick",), 90),
            KnownWork("编程珠玑", ("Jon Bentley",), 85),
            KnownWork("Programming Pearls", ("Jon Bentley",), 85),
            KnownWork("剑指Offer", ("何海涛",), 80),
            KnownWork("LeetCode", (), 75),
        ),
    ),
    "system": TopicCategory(
        triggers=("操作系统", "计算机系统", "计算机网络", "operating system",
                  "computer systems", "computer networks"),
        variants_zh=("深入理解计算机系统", "操作系统导论", "现代操作系统", "TCP/IP详解"),
        variants_en=("Computer Systems A Programmer's Perspective",
                     "Operating Systems Three Easy Pieces", "Modern Operating Systems Tanenbaum",
                     "TCP/IP Illustrated Stevens"),
        english_terms=("operating systems", "computer networks"),
        known_works=(
            KnownWork("深入理解计算机系统", ("Randal Bryant", "CSAPP"), 100),
            KnownWork("Computer Systems: A Programmer's Perspective", ("Randal Bryant",), 100),
            KnownWork("操作系统导论", ("Remzi Arpaci",), 90),
            KnownWork("Operating Systems: Three Easy Pieces", ("Remzi Arpaci",), 90),
            KnownWork("现代操作系统", ("Andrew Tanenbaum",), 90),
            KnownWork("Modern Operating Systems", ("Andrew Tanenbaum",), 90),
            KnownWork("计算机网络", ("谢希仁", "James Kurose"), 85),
            KnownWork("TCP/IP详解", ("W. Richard Stevens",), 90),
        ),
    ),
}

# Terms worth a dedicated Douban query when they appear in a technical request.
DOUBAN_TECH_TERMS = ("AI", "机器学习", "深度学习", "Python", "Java", "前端", "后端", "算法", "数据")

# --- non-fiction scoring vocabularies -------------------------------------

THEORY_TITLE_TERMS = (
    "原理", "设计", "实现", "架构", "内幕", "源码", "深入理解", "深入",
    "内核", "核心", "本质", "机制", "底层", "理论",
    "principles", "internals", "design", "implementation", "architecture",
    "in-depth", "mechanism", "kernel", "theory",
)

TUTORIAL_TITLE_TERMS = ("入门", "教程", "从零开始", "tutorial", "beginner", "for dummies")

EDUCATIONAL_TITLE_TERMS = (
    "入门", "教程", "实战", "指南", "学习", "基础", "从入门到",
    "tutorial", "introduction", "guide", "learning", "hands-on", "beginner",
)

IRRELEVANT_TITLE_TERMS = (
    "营销", "商业", "管理", "领导", "城区", "杂志", "周刊",
    "marketing", "business", "magazine", "weekly", "periodical",
)

LOW_QUALITY_TITLE_TERMS = (
    "fake", "misc", "collection", "omnibus", "digest", "合集", "大全", "速成",
)

# Providers whose community ratings are considered more trustworthy.
TRUSTED_SOURCE_BONUS = {Source.DOUBAN: 15}
FICTION_TRUSTED_SOURCE_BONUS = {Source.DOUBAN: 20}

PLACEHOLDER_THUMBNAIL_TERMS = ("placeholder", "no_cover", "nophoto")

# --- fiction scoring vocabularies -----------------------------------------

NON_FICTION_TITLE_TERMS = (
    "教程", "入门", "指南", "手册", "开发", "编程", "教学", "应用", "技术",
    "周刊", "杂志", "期刊", "年鉴", "词典", "字典", "教材", "论文",
    "电脑", "计算机", "软件", "网络", "系统", "数据", "算法",
    "internet", "tutorial", "manual", "programming", "development", "computer",
    "handbook", "textbook", "dictionary", "software",
    "机器人学", "人工智能导论", "城市规划", "都市計劃", "city planning",
    "科学文化", "科學文化", "translation", "翻译", "翻譯", "linguistics", "语言学",
    "創作與研究", "解構",
)

COMMENTARY_TITLE_TERMS = (
    "世界观", "解读", "解析", "分析", "研究", "评论", "导读", "赏析",
    "analysis", "companion", "guide to", "study of", "criticism", "reader's guide",
)

FICTION_TITLE_TERMS = (
    "小说", "小說", "novel", "fiction",
    "科幻", "奇幻", "悬疑", "推理", "言情", "武侠", "玄幻", "穿越",
    "fantasy", "mystery", "romance", "thriller",
)

FICTION_CATEGORY_TERMS = (
    "fiction", "novel", "science fiction", "fantasy", "mystery",
    "小说", "科幻", "文学",
)

FICTION_DESCRIPTION_TERMS = ("故事讲述", "主人公", "小说", "科幻", "protagonist", "novel")

# Titles that mark a known work as the original rather than commentary on it.
ORIGINAL_EDITION_TERMS = ("全集", "七部曲", "三部曲", "trilogy", "complete")

COMMENTARY_WORK_FRACTION = 0.3

GENRES: dict[str, Genre] = {
    "scifi": Genre(
        triggers=("科幻", "science fiction", "sci-fi"),
        title_terms=("科幻", "science fiction", "sci-fi", "银河", "基地", "火星",
                     "太空", "星际", "galactic", "starship"),
        category_terms=("science fiction",),
        variants_zh=("三体 刘慈欣", "银河帝国 阿西莫夫", "科幻小说", "中国科幻", "基地 阿西莫夫"),
        variants_en=("science fiction", "sci-fi novel"),
        douban_variants=("三体", "刘慈欣", "银河帝国", "阿西莫夫", "基地", "王晋康", "何夕"),
        known_authors=("刘慈欣", "阿西莫夫", "asimov", "艾萨克·阿西莫夫", "isaac asimov",
                       "克拉克", "arthur c. clarke", "arthur clarke", "海因莱因", "heinlein",
                       "威尔斯", "h.g. wells", "h. g. wells", "王晋康", "何夕", "韩松",
                       "ursula k. le guin", "frank herbert"),
        known_works=(
            KnownWork("三体", bonus=100),
            KnownWork("基地", bonus=80),
            KnownWork("foundation", bonus=80),
            KnownWork("银河帝国", bonus=80),
            KnownWork("dune", bonus=80),
            KnownWork("2001", bonus=60),
            KnownWork("火星", bonus=40),
            KnownWork("黑暗森林", bonus=80),
            KnownWork("死神永生", bonus=80),
        ),
    ),
    "fantasy": Genre(
        triggers=("奇幻", "玄幻", "fantasy"),
        title_terms=("奇幻", "玄幻", "魔法", "fantasy", "dragon", "wizard"),
        category_terms=("fantasy",),
        variants_zh=("奇幻小说", "玄幻小说", "魔戒"),
        variants_en=("fantasy novel", "epic fantasy"),
        douban_variants=("魔戒", "冰与火"),
        known_authors=("托尔金", "tolkien", "乔治·马丁", "george r. r. martin", "george r.r. martin"),
        known_works=(
            KnownWork("魔戒", bonus=80),
            KnownWork("the lord of the rings", bonus=80),
            KnownWork("冰与火之歌", bonus=80),
            KnownWork("a game of thrones", bonus=80),
        ),
    ),
    "mystery": Genre(
        triggers=("悬疑", "推理", "mystery", "detective", "thriller"),
        title_terms=("悬疑", "推理", "侦探", "mystery", "detective", "murder"),
        category_terms=("mystery", "detective", "thriller"),
        variants_zh=("东野圭吾", "推理小说", "悬疑小说", "阿加莎"),
        variants_en=("mystery novel", "detective fiction"),
        douban_variants=("东野圭吾", "白夜行", "嫌疑人", "阿加莎"),
        known_authors=("东野圭吾", "阿加莎", "agatha christie", "柯南·道尔", "arthur conan doyle"),
        known_works=(
            KnownWork("白夜行", bonus=80),
            KnownWork("嫌疑人x的献身", bonus=80),
            KnownWork("and then there were none", bonus=80),
            KnownWork("无人生还", bonus=80),
        ),
    ),
    "wuxia": Genre(
        triggers=("武侠",),
        title_terms=("武侠", "江湖", "剑"),
        variants_zh=("金庸", "武侠小说", "古龙"),
        douban_variants=("金庸", "射雕", "天龙八部", "古龙"),
        known_authors=("金庸", "古龙", "梁羽生"),
        known_works=(
            KnownWork("射雕英雄传", bonus=80),
            KnownWork("天龙八部", bonus=80),
            KnownWork("笑傲江湖", bonus=80),
        ),
    ),
    "romance": Genre(
        triggers=("言情", "爱情", "romance"),
        title_terms=("言情", "爱情", "romance", "love"),
        category_terms=("romance",),
        variants_zh=("言情小说", "爱情小说"),
        variants_en=("romance novel",),
    ),
}

# Fallback Google variants for fiction with no recognised sub-genre.
FICTION_DEFAULT_VARIANTS_ZH = ("中文小说", "华语小说")
FICTION_DEFAULT_VARIANTS_EN = ("fiction novel",)
