"""CEFR level guidance embedded into translation prompts.

Generic guidance applies to every target language; German, French, and Spanish
add grammar constraints on top. Unknown levels fall back to B1.
"""

from __future__ import annotations


_FALLBACK_LEVEL = "B1"

GENERIC_GUIDELINES: dict[str, str] = {
    "A1": (
        "A1 (Beginner), strict simplification:\n"
        "- At most 8-10 words per sentence, main clauses only, one idea per sentence.\n"
        "- Around 500 high-frequency words; concrete nouns; no idioms.\n"
        "- Present tense only.\n"
        "- Connectors limited to and, or, but."
    ),
    "A2": (
        "A2 (Elementary), significant simplification:\n"
        "- At most 12-15 words per sentence and one subordinate clause.\n"
        "- Around 1,500 everyday words; basic opinions and emotions.\n"
        "- Present, simple past and near-future expressions.\n"
        "- Connectors such as because, so, when, if, first, then."
    ),
    "B1": (
        "B1 (Intermediate), moderate simplification:\n"
        "- At most 18-20 words per sentence and two subordinate clauses.\n"
        "- Around 3,000 words; basic abstract concepts and common collocations.\n"
        "- All common tenses, perfect tenses and polite conditionals.\n"
        "- Split sentences with three or more clauses."
    ),
    "B2": (
        "B2 (Upper-intermediate), light simplification:\n"
        "- Up to 25 words per sentence; complex structures allowed.\n"
        "- Around 5,000 words; idioms and some technical terms are fine.\n"
        "- Full tense range, passive voice, hypotheticals.\n"
        "- Only split sentences with four or more nested clauses."
    ),
    "C1": (
        "C1 (Advanced), minimal changes:\n"
        "- Near-native complexity; keep the author's sentence structure and voice.\n"
        "- Keep advanced vocabulary, figurative language and technical terms.\n"
        "- Simplify only what would be genuinely incomprehensible."
    ),
    "C2": (
        "C2 (Mastery), preserve the original:\n"
        "- Native-level complexity, style, register and tone.\n"
        "- Natural idiomatic translation that keeps nuance and rhetorical devices."
    ),
}

GERMAN_GUIDELINES: dict[str, str] = {
    "A1": (
        "German A1: nominative case only; verb in second position; no subordinate "
        "clauses; Praesens only; avoid passive, relative clauses, Konjunktiv and Perfekt."
    ),
    "A2": (
        "German A2: nominative, accusative and simple dative; no genitive (use von + "
        "dative); Praesens and Perfekt; simple weil/dass/wenn clauses; avoid Konjunktiv II "
        "and passive."
    ),
    "B1": (
        "German B1: all four cases; relative clauses with der/die/das; zu-infinitives; "
        "Praeteritum for common verbs, Futur I, simple Konjunktiv II (wuerde, koennte); "
        "Vorgangspassiv allowed."
    ),
    "B2": (
        "German B2: Konjunktiv I and II, all passive forms, extended adjective "
        "constructions and two-part connectors; simplify only very deep nesting."
    ),
    "C1": (
        "German C1: keep participial constructions, nominalisations and formal "
        "connectors; preserve register."
    ),
    "C2": "German C2: full native complexity; preserve voice, wordplay and regional forms.",
}

FRENCH_GUIDELINES: dict[str, str] = {
    "A1": (
        "French A1: present tense only; subject pronouns only; ne...pas as the only "
        "negation; no inversion questions, relative clauses or compound tenses."
    ),
    "A2": (
        "French A2: present, passe compose, imparfait and futur proche; direct and "
        "indirect object pronouns; reflexive verbs; no subjonctif or plus-que-parfait."
    ),
    "B1": (
        "French B1: all indicative tenses, conditionnel present, basic subjonctif after "
        "common triggers; relative pronouns qui, que, ou; pronouns y and en."
    ),
    "B2": (
        "French B2: subjonctif present and passe, conditionnel passe, all si-clauses, "
        "dont and lequel, passive voice, advanced connectors."
    ),
    "C1": "French C1: keep passe simple, literary subjunctive and formal register.",
    "C2": "French C2: full native complexity; preserve style and cultural references.",
}

SPANISH_GUIDELINES: dict[str, str] = {
    "A1": (
        "Spanish A1: presente only; simple ser/estar distinction; subject pronouns only; "
        "no past tenses, subjunctive, object pronouns or reflexive verbs."
    ),
    "A2": (
        "Spanish A2: presente, indefinido, perfecto, imperfecto, estar + gerundio and "
        "ir a + infinitive; reflexive verbs and object pronouns; no subjunctive, "
        "conditional or futuro simple."
    ),
    "B1": (
        "Spanish B1: all indicative tenses, condicional simple, basic presente de "
        "subjuntivo and imperativo; relative que, donde, quien."
    ),
    "B2": (
        "Spanish B2: full subjunctive system, complete si-clauses, passive and pasiva "
        "refleja, cuyo and el cual."
    ),
    "C1": "Spanish C1: keep complex hypothetical chains, formal register and regional forms.",
    "C2": "Spanish C2: full native complexity; preserve voice, idioms and rhetoric.",
}

_LANGUAGE_TABLES: tuple[tuple[tuple[str, ...], dict[str, str]], ...] = (
    (("german", "deutsch"), GERMAN_GUIDELINES),
    (("french", "français", "francais"), FRENCH_GUIDELINES),
    (("spanish", "español", "espanol"), SPANISH_GUIDELINES),
)


def language_guidelines(language: str, level: str) -> str | None:
    """Return language-specific guidance, or `None` for unsupported languages."""

    normalized_language = language.strip().lower()
    normalized_level = level.strip().upper()
    for aliases, table in _LANGUAGE_TABLES:
        if any(alias in normalized_language for alias in aliases):
            return table.get(normalized_level, table[_FALLBACK_LEVEL])
    return None


def cefr_guidelines(language: str, level: str) -> str:
    """Return generic guidance for `level`, followed by language-specific guidance."""

    normalized_level = level.strip().upper()
    generic = GENERIC_GUIDELINES.get(normalized_level, GENERIC_GUIDELINES[_FALLBACK_LEVEL])
    specific = language_guidelines(language, level)
    if specific is None:
        return generic
    return f"{generic}\n\n{specific}"
