"""Component matchers shared by the scoring algorithms.

Each matcher scores one dimension on 0-100: education (degree), experience
(years + relevance), skills, eligibility. Matched counts are always job-side,
i.e. how many of the job's items the applicant satisfies.
"""

import logging
import math
from typing import NamedTuple

from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from services.embeddings import EmbeddingService, similarity_percent
from services.ranking.text_matching import (
    ListMode,
    clean_degree_requirement,
    detect_list_mode,
    extract_degree_field,
    is_no_requirement_text,
    parse_list_expression,
    skill_tokens,
    string_similarity,
    token_jaccard,
)

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 50.0
DEGREE_HIT_THRESHOLD = 85.0
ELIGIBILITY_HIT_THRESHOLD = 92.0
RELATED_FIELD_FLOOR = 85.0

SKILL_EXACT_THRESHOLD = 95.0
SKILL_TOKEN_THRESHOLD = 85.0
SKILL_SEMANTIC_THRESHOLD = 65.0
SKILL_SEMANTIC_WEIGHT = 0.85
SKILL_BAND_FLOOR = 55.0
SKILL_MATCHED_BAND = 50.0
SKILL_SURPLUS_BONUS_CAP = 5.0

DEGREE_LEVELS = [
    "elementary",
    "secondary",
    "vocational",
    "bachelor",
    "master",
    "doctoral",
    "graduate studies",
]

# Job field -> applicant fields treated as closely related.
RELATED_FIELDS: dict[str, list[str]] = {
    # IT / IS / CS / e-government
    "information technology": [
        "computer science", "software engineering", "information systems", "information system",
        "information management", "information and communications technology",
        "information communication technology", "information and communication technology",
        "computer engineering", "informatics", "management information systems",
        "government information systems", "e-governance", "e-government",
    ],
    "information systems": [
        "information technology", "computer science", "software engineering",
        "management information systems", "information management",
        "information and communications technology", "computer engineering", "informatics",
    ],
    "computer science": [
        "information technology", "software engineering", "computer engineering",
        "information systems", "informatics", "information and communications technology",
    ],
    "computer engineering": [
        "computer science", "information technology", "electronics engineering",
        "software engineering", "information systems",
    ],
    "software engineering": [
        "computer science", "information technology", "information systems", "computer engineering",
    ],
    "informatics": ["information technology", "computer science", "information systems", "data science"],
    # Engineering / planning / built environment
    "civil engineering": [
        "architecture", "structural engineering", "construction management", "construction engineering",
        "sanitary engineering", "environmental engineering", "transportation engineering",
        "highway engineering", "water resources engineering",
    ],
    "architecture": [
        "civil engineering", "construction management", "environmental planning", "urban planning",
        "urban and regional planning", "landscape architecture", "building technology",
    ],
    "environmental planning": [
        "urban planning", "urban and regional planning", "regional planning", "architecture",
        "civil engineering", "environmental management", "environmental science",
    ],
    # Health
    "nursing": [
        "midwifery", "health sciences", "medical technology", "medical laboratory science",
        "public health", "community health", "allied health sciences",
    ],
    "midwifery": ["nursing", "health sciences", "public health", "community health"],
    "public health": ["nursing", "community health", "health sciences", "medical technology"],
    # Accounting / finance / treasury
    "accounting": [
        "accountancy", "finance", "financial management", "business administration",
        "accounting technology", "management accounting", "banking and finance", "public finance",
        "public financial management", "fiscal administration", "local fiscal administration",
        "treasury management", "budget management", "public budgeting", "internal auditing",
        "audit and internal control",
    ],
    "accountancy": [
        "accounting", "financial management", "finance", "management accounting",
        "public finance", "public financial management",
    ],
    "financial management": [
        "accounting", "accountancy", "business administration", "banking and finance",
        "economics", "public finance",
    ],
    "public finance": [
        "accounting", "accountancy", "financial management", "fiscal administration",
        "public financial management", "treasury management", "budget management",
    ],
    "fiscal administration": [
        "public finance", "public administration", "accounting", "accountancy", "public budgeting",
    ],
    # Business / office / HR
    "business administration": [
        "management", "organizational development", "commerce", "entrepreneurship",
        "marketing management", "financial management", "human resource management",
        "office administration", "public administration", "management accounting",
        "business management", "operations management", "supply chain management",
    ],
    "commerce": ["business administration", "accounting", "financial management", "marketing management"],
    "office administration": [
        "public administration", "business administration", "secretarial", "office management",
        "management", "executive assistant", "records management", "administrative management",
    ],
    "public administration": [
        "office administration", "business administration", "political science", "public management",
        "public governance", "local government administration", "local governance", "public affairs",
        "development studies", "community development", "fiscal administration", "public policy",
    ],
    "public management": [
        "public administration", "public governance", "public affairs", "local governance",
        "development management",
    ],
    "public governance": ["public administration", "public management", "local governance", "political science"],
    "human resource management": [
        "human resources management", "business administration", "psychology",
        "industrial psychology", "organizational development",
    ],
    # Local governance / development
    "local government administration": [
        "public administration", "local governance", "public management", "public governance",
        "community development", "development management",
    ],
    "local governance": [
        "public administration", "local government administration", "public governance",
        "community development", "development management",
    ],
    "community development": [
        "social work", "public administration", "local governance", "development studies",
        "rural development", "community organizing",
    ],
    "development studies": [
        "public administration", "community development", "rural development",
        "development management", "political science",
    ],
    # Social welfare
    "social work": [
        "social welfare", "community development", "psychology", "sociology",
        "guidance and counseling", "human services",
    ],
    "social welfare": ["social work", "community development", "public administration", "development studies"],
    "psychology": [
        "industrial psychology", "organizational psychology", "human resource management",
        "guidance and counseling", "social work",
    ],
    # Disaster risk / public safety
    "disaster risk reduction and management": [
        "disaster risk reduction management", "disaster management", "emergency management",
        "emergency and disaster management", "civil defense", "public safety administration",
        "public safety management", "environmental management", "community development",
    ],
    "disaster management": [
        "disaster risk reduction and management", "emergency management", "civil defense",
        "public safety administration",
    ],
    "public safety administration": [
        "public safety management", "criminology", "industrial security management",
        "disaster risk reduction and management", "police administration",
    ],
    "criminology": [
        "criminal justice", "public safety administration", "industrial security management", "forensic science",
    ],
    # Agriculture / environment
    "agriculture": [
        "agribusiness", "agricultural engineering", "agricultural and biosystems engineering",
        "agricultural economics", "animal science", "crop science", "rural development",
        "veterinary medicine",
    ],
    "agribusiness": ["agriculture", "business administration", "commerce", "agricultural economics"],
    "environmental science": [
        "environmental management", "environmental engineering", "environmental planning",
        "natural resources management", "forestry", "marine biology", "biology",
    ],
    # Education
    "elementary education": ["early childhood education", "primary education", "basic education"],
    "secondary education": [
        "social studies education", "mathematics education", "science education",
        "english education", "mapeh education",
    ],
    "social studies education": [
        "secondary education major in social studies", "history", "political science", "community development",
    ],
    # Records / library
    "library and information science": [
        "library science", "information studies", "archives and records management",
        "records management", "records administration",
    ],
    "records management": [
        "archives and records management", "records and archives management", "office administration",
        "library and information science", "information management",
    ],
    # Hospitality / tourism
    "hospitality management": [
        "hotel and restaurant management", "hotel management", "tourism management",
        "culinary arts", "events management",
    ],
    "tourism management": [
        "tourism", "hospitality management", "hotel and restaurant management", "travel management",
        "events management", "development communication",
    ],
    # Communication
    "communication": [
        "mass communication", "development communication", "journalism", "public relations",
        "marketing communication", "media studies",
    ],
    "development communication": [
        "communication", "mass communication", "journalism", "public relations",
        "community development", "social work",
    ],
}


class AndGate(NamedTuple):
    is_and: bool
    all_hit: bool
    hits: int
    required: int


class SkillMatch(NamedTuple):
    score: float
    matched_count: int


class EligibilityMatch(NamedTuple):
    score: float
    matched_count: int


# ---------------------------------------------------------------------------
# Education
# ---------------------------------------------------------------------------

def _degree_option_similarity(job_option: str, applicant_option: str) -> float:
    return string_similarity(extract_degree_field(job_option), extract_degree_field(applicant_option))


def match_degree_requirement(job_degree: str, applicant_degree: str) -> float:
    """Degree match honoring "A or B" (best pair) and "A and B" (hits / required)."""
    cleaned_job = clean_degree_requirement(job_degree)
    job_mode = detect_list_mode(cleaned_job)
    job_options = parse_list_expression(cleaned_job)
    applicant_options = parse_list_expression(applicant_degree)
    if not job_options or not applicant_options:
        return 0.0

    def option_score(job_option: str, applicant_option: str) -> float:
        sim = _degree_option_similarity(job_option, applicant_option)
        return 100.0 if sim >= DEGREE_HIT_THRESHOLD else sim

    if job_mode is ListMode.OR:
        return max(option_score(jd, ad) for jd in job_options for ad in applicant_options)

    if job_mode is ListMode.AND:
        hits = sum(
            1 for jd in job_options
            if max(option_score(jd, ad) for ad in applicant_options) >= DEGREE_HIT_THRESHOLD
        )
        return hits / len(job_options) * 100

    return max(string_similarity(cleaned_job, ad) for ad in applicant_options)


def evaluate_degree_and_gate(job_degree: str, applicant_degree: str) -> AndGate:
    """Whether every item of an AND-style degree requirement has a strong match."""
    cleaned_job = clean_degree_requirement(job_degree).lower().strip()
    if detect_list_mode(cleaned_job) is not ListMode.AND:
        return AndGate(is_and=False, all_hit=True, hits=0, required=0)

    job_options = parse_list_expression(cleaned_job)
    applicant_options = parse_list_expression(applicant_degree.lower().strip())
    required = len(job_options)
    if not required or not applicant_options:
        return AndGate(is_and=True, all_hit=False, hits=0, required=required)

    hits = sum(
        1 for jd in job_options
        if max(_degree_option_similarity(jd, ad) for ad in applicant_options) >= DEGREE_HIT_THRESHOLD
    )
    return AndGate(is_and=True, all_hit=hits == required, hits=hits, required=required)


def apply_related_fields(score: float, job_degree: str, applicant_degree: str) -> float:
    job_lower = job_degree.lower()
    applicant_lower = applicant_degree.lower()
    for field, related in RELATED_FIELDS.items():
        if field in job_lower and any(r in applicant_lower for r in related):
            score = max(score, RELATED_FIELD_FLOOR)
    return score


def _normalize_meta_level(level: str | None) -> str | None:
    if not level:
        return None
    value = level.lower().strip()
    if value == "college":
        return "bachelor"
    if value in ("graduate studies", "graduate-studies", "graduate_studies"):
        return "graduate studies"
    return value if value in DEGREE_LEVELS else None


def resolve_degree_level(meta_level: str | None, text: str) -> str | None:
    """Level from dictionary metadata, else from keywords in the degree text."""
    level = _normalize_meta_level(meta_level)
    if level:
        return level

    lower = text.lower()
    if "elementary" in lower or "primary" in lower:
        return "elementary"
    if any(k in lower for k in ("high school", "secondary", "senior high", "junior high")):
        return "secondary"
    if any(k in lower for k in ("vocational", "tech-voc", "tvet", "tesda")):
        return "vocational"
    if any(k in lower for k in ("bachelor", "college", "b.s.", "bs ")):
        return "bachelor"
    if "master" in lower:
        return "master"
    if any(k in lower for k in ("doctor", "phd", "ph.d")):
        return "doctoral"
    if any(k in lower for k in ("graduate studies", "postgraduate", "post-graduate")):
        return "graduate studies"
    return None


def _best_field_similarity(job_degree: str, applicant_degree: str) -> float:
    job_options = parse_list_expression(job_degree) or [job_degree]
    applicant_options = parse_list_expression(applicant_degree) or [applicant_degree]
    return max(
        string_similarity(extract_degree_field(jd).lower(), extract_degree_field(ad).lower())
        for jd in job_options
        for ad in applicant_options
    )


def adjust_education_for_level_and_field(
    base_score: float,
    job_degree: str,
    applicant_degree: str,
    job_level: str | None = None,
    applicant_level: str | None = None,
    job_field_group: str | None = None,
    applicant_field_group: str | None = None,
) -> float:
    """Refine a raw degree score with degree level and field relatedness.

    - same level: blend 0.6 * score + 0.4 * field similarity, with a small
      penalty when fields are clearly unrelated (< 40)
    - applicant above the required level: +4 per level (max 3 levels)
    - applicant below: -6 per level (max 3 levels)
    - same field group in the dictionary: at least 70, then +5
    - any non-zero base score keeps a floor of 20
    """
    score = base_score
    job_lvl = resolve_degree_level(job_level, job_degree)
    app_lvl = resolve_degree_level(applicant_level, applicant_degree)

    if job_lvl and app_lvl and job_lvl == app_lvl:
        field_sim = _best_field_similarity(job_degree, applicant_degree)
        if field_sim > 0:
            score = 0.6 * score + 0.4 * field_sim
            if field_sim < 40:
                score = max(score - (40 - field_sim) * 0.25, 0.0)

    if job_lvl and app_lvl:
        job_idx = DEGREE_LEVELS.index(job_lvl)
        app_idx = DEGREE_LEVELS.index(app_lvl)
        if app_idx > job_idx:
            score += min(app_idx - job_idx, 3) * 4
        elif app_idx < job_idx:
            score -= min(job_idx - app_idx, 3) * 6

    if job_field_group and applicant_field_group and job_field_group == applicant_field_group:
        score = max(score, 70.0) + 5

    if base_score > 0:
        score = max(score, 20.0)
    return max(0.0, min(100.0, score))


def compute_education_score(
    job: JobRequirements,
    applicant: ApplicantData,
    use_related_fields: bool = False,
) -> float:
    job_degree_raw = job.degree_requirement or ""
    applicant_degree_raw = applicant.highest_educational_attainment or ""
    if is_no_requirement_text(job_degree_raw):
        return NEUTRAL_SCORE

    score = match_degree_requirement(job_degree_raw.lower().strip(), applicant_degree_raw.lower().strip())

    gate = evaluate_degree_and_gate(job_degree_raw, applicant_degree_raw)
    if gate.is_and and not gate.all_hit:
        logger.debug(
            "Degree AND requirement not satisfied (%d/%d) for %r vs %r",
            gate.hits, gate.required, job_degree_raw, applicant_degree_raw,
        )
        return 0.0

    if use_related_fields:
        score = apply_related_fields(score, job_degree_raw, applicant_degree_raw)

    return adjust_education_for_level_and_field(
        score,
        job_degree_raw,
        applicant_degree_raw,
        job.degree_level,
        applicant.degree_level,
        job.degree_field_group,
        applicant.degree_field_group,
    )


# ---------------------------------------------------------------------------
# Experience
# ---------------------------------------------------------------------------

def required_years(job: JobRequirements) -> float:
    return job.years_of_experience if job.years_of_experience and job.years_of_experience > 0 else 1.0


def compute_years_score(required: float, applicant_years: float) -> float:
    """0 years -> 0; under the requirement 40..80; meeting it 80..100 (capped at 3x)."""
    required = required if required and required > 0 else 1.0
    years = max(0.0, applicant_years or 0.0)
    if years == 0:
        return 0.0

    ratio = years / required
    if ratio < 1:
        return max(0.0, min(80.0, 40 + 40 * ratio))
    extra = min(ratio - 1, 2.0)
    return max(80.0, min(100.0, 80 + extra / 2 * 20))


def compute_experience_score(
    job: JobRequirements,
    applicant: ApplicantData,
    relevance: float | None = None,
) -> float:
    """0.7 * years score + 0.3 * relevance. Relevance defaults to 100 with any experience."""
    years = max(0.0, applicant.total_years_experience or 0.0)
    years_score = compute_years_score(required_years(job), years)
    if years == 0:
        relevance = 0.0
    elif relevance is None:
        relevance = 100.0
    return years_score * 0.7 + relevance * 0.3


def work_title_similarity(job_title: str, applicant_titles: list[str]) -> float | None:
    """Best similarity (0-100) of the job title to any past role, None if either is missing."""
    titles = [t for t in applicant_titles if t and t.strip()]
    if not job_title or not job_title.strip() or not titles:
        return None
    return max(
        max(string_similarity(job_title, title), token_jaccard(job_title, title) * 100)
        for title in titles
    )


def composite_skill_experience(skills_score: float, experience_ratio: float, beta: float = 0.5) -> float:
    """skills * e^(beta * min(ratio, 2)) / e^(2 * beta): full weight at twice the required years."""
    return skills_score * math.exp(beta * min(experience_ratio, 2.0)) / math.exp(beta * 2)


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------

def _dedupe(skills: list[str]) -> list[str]:
    seen: dict[str, str] = {}
    for skill in skills:
        if not isinstance(skill, str):
            continue
        key = skill.lower().strip()
        if key and key not in seen:
            seen[key] = skill
    return list(seen.values())


def score_skill_pair(job_skill: str, applicant_skill: str, semantic: float = 0.0) -> float:
    """Band score (0-100) for one job/applicant skill pair.

    Combines Levenshtein similarity, token overlap (x30) and, when strong
    enough, embedding similarity (x0.85). Combined scores below 55 count as
    no match; 55..100 is stretched onto 0..100.
    """
    text_sim = string_similarity(job_skill, applicant_skill)

    token_score = 0.0
    if text_sim < SKILL_TOKEN_THRESHOLD:
        job_tokens = skill_tokens(job_skill)
        app_tokens = skill_tokens(applicant_skill)
        common = [t for t in job_tokens if t in app_tokens]
        if common and job_tokens:
            token_score = len(common) / len(job_tokens) * 30

    combined = max(text_sim, token_score)
    if semantic >= SKILL_SEMANTIC_THRESHOLD:
        combined = max(combined, semantic * SKILL_SEMANTIC_WEIGHT)
    if text_sim >= SKILL_EXACT_THRESHOLD:
        combined = 100.0

    clipped = max(0.0, min(100.0, combined))
    if clipped < SKILL_BAND_FLOOR:
        return 0.0
    return (clipped - SKILL_BAND_FLOOR) / (100 - SKILL_BAND_FLOOR) * 100


async def calculate_skill_match(
    job_skills: list[str],
    applicant_skills: list[str],
    embedder: EmbeddingService | None = None,
) -> SkillMatch:
    """Greedy one-to-one skill assignment with a small bonus for surplus skills."""
    unique_job = [s for s in _dedupe(job_skills) if not is_no_requirement_text(s)]
    unique_app = _dedupe(applicant_skills)
    if not unique_job:
        return SkillMatch(NEUTRAL_SCORE, 0)
    if not unique_app:
        return SkillMatch(0.0, 0)

    job_vecs: list = [None] * len(unique_job)
    app_vecs: list = [None] * len(unique_app)
    if embedder is not None:
        job_vecs = await embedder.embed_batch(unique_job)
        app_vecs = await embedder.embed_batch(unique_app)

    total = 0.0
    matched = 0
    used: set[int] = set()
    for job_skill, job_vec in zip(unique_job, job_vecs):
        best_idx, best_band = None, 0.0
        for idx, (app_skill, app_vec) in enumerate(zip(unique_app, app_vecs)):
            if idx in used:
                continue
            semantic = similarity_percent(job_vec, app_vec) if job_vec is not None and app_vec is not None else 0.0
            band = score_skill_pair(job_skill, app_skill, semantic)
            if band > best_band:
                best_idx, best_band = idx, band

        if best_idx is not None and best_band > 0:
            used.add(best_idx)
            total += best_band
            if best_band >= SKILL_MATCHED_BAND:
                matched += 1

    base = total / (len(unique_job) * 100) * 100
    bonus = min(max(0, len(unique_app) - len(unique_job)) * 1.0, SKILL_SURPLUS_BONUS_CAP)
    return SkillMatch(min(base + bonus, 100.0), matched)


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

def has_no_eligibility_requirement(job_eligibilities: list[str]) -> bool:
    lines = [e.strip() for e in job_eligibilities if e and e.strip()]
    return not lines or any(is_no_requirement_text(e) for e in lines)


def compute_eligibility_match(
    job_eligibilities: list[str],
    applicant_eligibilities: list[str],
) -> EligibilityMatch:
    """All-or-nothing eligibility match.

    Every job line is a group: a single eligibility, "A, B, or C" (any one)
    or "A and B" (all). All groups satisfied -> 100, otherwise 0. No real
    requirement -> neutral 50.
    """
    if has_no_eligibility_requirement(job_eligibilities):
        return EligibilityMatch(NEUTRAL_SCORE, 0)

    held = [a.lower().strip() for a in applicant_eligibilities if a and a.strip()]

    def has_token(token: str) -> bool:
        token = token.lower().strip()
        if not token:
            return False
        return any(a == token or string_similarity(token, a) >= ELIGIBILITY_HIT_THRESHOLD for a in held)

    matched = 0
    satisfied: list[bool] = []
    for line in job_eligibilities:
        req = (line or "").lower().strip()
        if not req:
            continue

        mode = detect_list_mode(req)
        if mode is ListMode.SINGLE:
            hit = has_token(req)
            matched += int(hit)
            satisfied.append(hit)
            continue

        tokens = parse_list_expression(req)
        if not tokens:
            continue
        hits = [has_token(t) for t in tokens]
        matched += sum(hits)
        satisfied.append(any(hits) if mode is ListMode.OR else all(hits))

    if not satisfied:
        return EligibilityMatch(NEUTRAL_SCORE, matched)
    return EligibilityMatch(100.0 if all(satisfied) else 0.0, matched)
