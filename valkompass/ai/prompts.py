"""
Gemini prompts for the valkompass.

Contains prompts for the three AI calls:
- Question generation (with an exclusion list of already asked statements)
- Analysis of the finished questionnaire
- Counter-argument chat ("Djävulens advokat")

Prompts are in Swedish; the questionnaire targets the 2026 Riksdag election.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from valkompass.core.analysis import DevilAdvocate
from valkompass.core.models import NO_OPINION, Answer, Question

# =============================================================================
# Question Generation
# =============================================================================

QUESTION_PROMPT = """Agera som en senior statsvetare och expert på svensk inrikespolitik.
Din uppgift är att generera {count} stycken skarpa, unika och polariserande påståenden för en valkompass inför valet 2026.
Börja numreringen av ID på {start_id}.

{exclusion_block}

INSTRUKTIONER FÖR HÖG KVALITET:
1. KONKRETISERA: Undvik vaga påståenden som "Sjukvården behöver mer resurser". Det ska vara konkreta politiska förslag.
   - DÅLIGT: "Klimatet är viktigt."
   - BRA: "Sverige ska bygga nya kärnkraftverk oavsett kostnad."

2. BLANDA KONFLIKTYTOR:
   - Höger vs Vänster (ekonomi, skatter, privatiseringar)
   - GAL vs TAN (migration, kultur, lag & ordning, miljö)
   - Stad vs Land (vindkraft, vargjakt, bensinpriser)

3. DAGSAKTUELLT: Utgå från vad partierna debatterar just nu i riksdagen och media.

4. BREDD PÅ ÄMNEN: Täck gärna marknadshyror, vinstförbud i välfärden, visitationszoner,
   public service, Nato och försvarsanslag, biståndet, aborträtt i grundlagen,
   gårdsförsäljning och återvandring om de inte redan täckts.

FORMAT: Returnera endast en JSON-array. Varje element ska ha fälten
"id" (heltal), "text" (påståendet), "explanation" (neutral bakgrund),
"category" (politikområde, t.ex. Ekonomi, Migration, Lag & Ordning) och
"searchQuery" (sökfråga för att läsa mer).
"""

EXCLUSION_BLOCK = """VIKTIGT - EXKLUDERINGS-LISTA:
Du har redan ställt frågor om nedanstående ämnen. Du får INTE ställa frågor som berör samma sakfråga igen.
Hitta NYA vinklar eller helt andra politikområden.

Redan genererade frågor (UNDVIK DESSA):
{items}
"""


def format_exclusions(questions: Iterable[Question]) -> str:
    """Render already generated questions as an exclusion block (empty if none)."""
    items = "\n".join(f"- {q.text} (Kategori: {q.category})" for q in questions)
    if not items:
        return ""
    return EXCLUSION_BLOCK.format(items=items)


def build_question_prompt(count: int, start_id: int, exclude: Sequence[Question]) -> str:
    return QUESTION_PROMPT.format(
        count=count,
        start_id=start_id,
        exclusion_block=format_exclusions(exclude),
    )


# =============================================================================
# Analysis
# =============================================================================

ANALYSIS_PROMPT = """Analysera dessa svar inför det svenska riksdagsvalet 2026.

VIKTIGT OM NYANSERINGAR:
Användaren har i vissa fall skrivit egna motiveringar ("ANVÄNDARENS MOTIVERING").
Använd dem för att förstå nyanser, justera partimatchningen och välja argumentet till Djävulens advokat.

Svar:
{answers}

Uppgifter:
1. Beräkna matchning i procent för alla partier (V, S, MP, C, L, M, KD, SD).
2. Placera användaren på GAL-TAN-skalan (y, -100 till 100) och vänster-höger (x, -100 till 100).
3. Placera även ut samtliga 8 riksdagspartier i samma koordinatsystem (partyPositions, partyId är en av v, s, mp, c, l, m, kd, sd).
4. Föreslå 2 möjliga regeringskoalitioner.
5. Djävulens advokat: ge ett motargument till användarens starkaste åsikt.
6. Historisk tidsresa: jämför det bäst matchande partiets hållning i en nyckelfråga idag med 1990-talet.
7. För varje parti, lista 3 ämnen där användaren och partiet tycker lika (strongestAgreements) och 3 där de tycker olika (strongestDisagreements).

FORMAT: Returnera ett JSON-objekt med fälten summary, matches (party, score, reason,
strongestAgreements, strongestDisagreements), categoryScores (category, score, description),
coordinates (x, y), partyPositions (partyId, x, y), coalitions (parties, totalMatch, description),
devilAdvocate (questionText, userStance, counterArgument) och historicalContext (topic, comparison).
"""


def format_answer_line(question: Question | None, answer: Answer) -> str:
    """One line per answer; weight marker and comment only when present."""
    if answer.value == NO_OPINION:
        value_text = "Vet ej / Ingen åsikt"
    else:
        value_text = f"Svar (1-5): {answer.value}"
    weight_text = " [EXTRA VIKTIG]" if answer.is_important else ""
    comment_text = ""
    if answer.has_comment:
        comment_text = f'\n   -> ANVÄNDARENS MOTIVERING: "{answer.comment}" (VÄG IN DETTA I ANALYSEN)'

    category = question.category if question else "Okänd"
    text = question.text if question else f"Fråga {answer.question_id}"
    return f'Kategori: {category}. Fråga: "{text}". {value_text}.{weight_text}{comment_text}'


def build_analysis_prompt(questions: Sequence[Question], answers: Sequence[Answer]) -> str:
    by_id = {q.id: q for q in questions}
    lines = "\n".join(format_answer_line(by_id.get(a.question_id), a) for a in answers)
    return ANALYSIS_PROMPT.format(answers=lines)


# =============================================================================
# Counter-argument Chat
# =============================================================================

DEVIL_PROMPT = """Du agerar som "Djävulens advokat" i en politisk chatt.

KONTEXT:
Ämne: "{question_text}"
Användarens ursprungliga åsikt: "{user_stance}"
Ditt första motargument: "{counter_argument}"

DIN PERSONA:
- Artig, intellektuell men envis.
- Ditt enda mål är att utmana användarens åsikter och hitta logiska luckor eller alternativa perspektiv.
- Håll INTE med användaren. Kommer användaren med ett bra argument, hitta en ny vinkel.
- Håll svaren korta (max 2-3 meningar). Skriv på svenska.

CHATTHISTORIK:
{history}

Användare (sista inlägget): {last_message}

Djävulens advokat (ditt svar):
"""


def build_chat_prompt(history: Sequence[tuple[str, str]], context: DevilAdvocate) -> str:
    """history is a sequence of (role, text) with role "user" or "model"."""
    lines = []
    for role, text in history:
        speaker = "Användare" if role == "user" else "Djävulens advokat"
        lines.append(f"{speaker}: {text}")
    last_message = history[-1][1] if history else ""
    return DEVIL_PROMPT.format(
        question_text=context.question_text,
        user_stance=context.user_stance,
        counter_argument=context.counter_argument,
        history="\n".join(lines),
        last_message=last_message,
    )
