"""
Alignment Prompts

Per-candidate alignment: one judgment per requirement, plus strengths,
weaknesses and interview probes. The model must not score or recommend;
that is done by the score aggregator.
"""

ALIGNMENT_OUTPUT_SCHEMA = """{
  "candidate_name": "Full Name",
  "email": "email address or null",
  "alignment_summary": "3-4 sentence overview",
  "alignment_details": [
    {
      "category": "Education|Experience|Technical Skill|Soft Skill|Certification|Responsibility|Additional Requirement",
      "requirement": "the requirement text exactly as listed",
      "priority": "MUST-HAVE|NICE-TO-HAVE",
      "status": "Aligned|Partially Aligned|Not Aligned|Not Mentioned",
      "justification": "evidence from the CV"
    }
  ],
  "strengths": ["..."],
  "weaknesses": ["..."],
  "interview_probes": ["..."]
}"""

ALIGNMENT_SYSTEM_PROMPT = f"""You are a candidate assessment specialist. Assess a CV against structured
job-description criteria.

For EVERY requirement listed in the criteria, in the order given:
- Copy the requirement text exactly into "requirement" and its label into "category".
- Decide "Aligned", "Partially Aligned", "Not Aligned", or "Not Mentioned" when the CV says
  nothing about it.
- Justify with direct evidence from the CV.

When a total experience figure is provided, treat it as authoritative and do not recompute
experience durations yourself.

Then give an alignment summary, strengths, weaknesses and 2-3 interview probes that explore the
weak areas. Do NOT produce any score or recommendation.

Maintain a neutral, analytical tone. Be concise but thorough.

Return ONLY a valid JSON object:
{ALIGNMENT_OUTPUT_SCHEMA}
"""

ALIGNMENT_USER_TEMPLATE = """=== JOB DESCRIPTION CRITERIA ===
{formatted_criteria}

=== CANDIDATE DATA ===
{candidate_data}

=== CV ===
{cv_text}"""

PARSED_CV_TEMPLATE = """Name: {name}
Email: {email}
Current role: {current_title} at {current_company}
Total experience (precomputed, authoritative): {total_experience}"""
