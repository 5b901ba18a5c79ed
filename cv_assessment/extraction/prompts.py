"""
Extraction Prompts

System and user prompts for job-description requirement extraction, CV
parsing and the candidate-name fallback.
"""

# ===== REQUIREMENT EXTRACTION =====

JD_OUTPUT_SCHEMA = """{
  "job_title": "exact job title",
  "position_number": "position / requisition number or empty string",
  "code": "OCN|WEX|SAN or null",
  "grade": "grade / level or empty string",
  "department": "department or empty string",
  "education": [{"description": "..."}, {"group_type": "OR", "requirements": [{"description": "..."}, {"description": "..."}]}],
  "experience": [...],
  "technical_skills": [...],
  "soft_skills": [...],
  "certifications": [...],
  "responsibilities": [...]
}"""

JD_EXTRACTION_SYSTEM_PROMPT = f"""You are an expert recruiter analysing job descriptions.

First extract the job title, the position/requisition number, the job code, the grade/level
and the department (if available). The job code MUST be one of 'OCN', 'WEX' or 'SAN'; use null
when none applies.

Then extract the key requirements. For each requirement decide whether it is a single item or a
conditional "OR" group.

=== REQUIREMENT RULES ===

1. OR groups: look for explicit "OR" conditions such as "Bachelor's Degree OR 5 years of
   experience". Emit a group with "group_type": "OR" and list each alternative as an object
   with a "description" field in "requirements".
2. Associated requirements: when parts of an OR condition belong together (a degree with its
   own minimum experience), keep each alternative as one complete description. Do not split a
   degree from its associated experience.
3. Everything that is not part of an explicit OR group is a single object with a
   "description" field.
4. Place each item in the most appropriate category: education, experience, technical_skills,
   soft_skills, certifications or responsibilities.
5. Keep wording such as "preferred", "nice to have" or "a plus" inside the description.
   Do NOT assign priorities or scores.

=== OUTPUT FORMAT ===

Return ONLY a valid JSON object (no markdown, no commentary):
{JD_OUTPUT_SCHEMA}
"""

JD_EXTRACTION_USER_TEMPLATE = """Analyse this job description:

{job_description}

Return the JSON object only."""


# ===== CV PARSING =====

CV_OUTPUT_SCHEMA = """{
  "name": "full name",
  "email": "email address",
  "phone": "phone or null",
  "linkedin": "LinkedIn URL or null",
  "current_title": "most recent job title or null",
  "current_company": "most recent employer or null",
  "total_experience": "total professional experience, e.g. '7.5 years', or null",
  "structured_content": {
    "summary": "two-sentence professional summary",
    "experience": [{"job_title": "", "company": "", "dates": "", "description": ["..."]}],
    "education": [{"degree": "", "institution": "", "dates": ""}],
    "skills": ["..."],
    "projects": [{"name": "", "description": "", "technologies": ["..."]}]
  }
}"""

CV_PARSE_SYSTEM_PROMPT = f"""You are an expert CV parser.

Extract the candidate's contact details and a structured version of the CV.

Rules:
- The email address is mandatory. Copy it exactly as written.
- Compute total_experience by summing the durations of all professional roles, counting
  overlapping periods once. Treat "Present" as the current date given with the CV. Express it in years
  with one decimal, e.g. "7.5 years".
- Never invent information that is not in the CV.

Return ONLY a valid JSON object:
{CV_OUTPUT_SCHEMA}
"""

CV_PARSE_USER_TEMPLATE = """Current date: {current_date}

CV:

{cv_text}

Return the JSON object only."""


# ===== NAME FALLBACK =====

NAME_EXTRACTION_SYSTEM_PROMPT = """You extract the candidate's full name from a CV.

Return ONLY a JSON object: {"candidate_name": "Full Name"}.
If no name can be found, return {"candidate_name": ""}."""

NAME_EXTRACTION_USER_TEMPLATE = """CV:

{cv_text}"""
