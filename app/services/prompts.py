from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
import json

from app.services.llm import ModelParams


@dataclass(frozen=True)
class PromptSpec:
    prompt: str
    system: Optional[str]
    temperature: float
    prefix_system: bool = True

    @property
    def params(self) -> ModelParams:
        return ModelParams(temperature=self.temperature, system=self.system, prefix_system=self.prefix_system)


ANALYSIS_SCHEMA = """{
  "overallScore": number 0-100,
  "strengths": string[],
  "improvements": string[],
  "missingElements": string[],
  "industryAlignment": { "score": number 0-100, "feedback": string },
  "keywordOptimization": { "score": number 0-100, "suggestions": string[] },
  "sections": {
    "summary": { "score": number 0-100, "feedback": string },
    "experience": { "score": number 0-100, "feedback": string },
    "skills": { "score": number 0-100, "feedback": string },
    "projects": { "score": number 0-100, "feedback": string },
    "education": { "score": number 0-100, "feedback": string }
  }
}"""

SUGGESTIONS_SCHEMA = """{
  "suggestions": [
    {
      "type": "add" | "improve" | "remove" | "reorder",
      "section": string,
      "title": string,
      "description": string,
      "priority": "high" | "medium" | "low",
      "estimatedImpact": string,
      "example": string (optional)
    }
  ]
}"""

STRICT_JSON_SYSTEM = "You output strict JSON only."
SUGGESTIONS_SYSTEM = "Output strict JSON only."
REWRITE_SYSTEM = "Return only the rewritten text."


def _dump(data: Any, indent: Optional[int] = None) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False)


def build_analysis_prompt(cv_data: Any) -> PromptSpec:
    prompt = (
        "You are a senior technical recruiter and CV expert specializing in software engineering roles.\n"
        "Analyze the CV and return a concise JSON object with the following keys:\n"
        f"{ANALYSIS_SCHEMA}\n"
        "Focus on technical depth and relevance, career progression and impact, ATS optimization "
        "for software engineering roles, and quantifiable achievements.\n"
        "Only return JSON, no prose.\n"
        f"CV Data: {_dump(cv_data, indent=2)}\n"
    )
    return PromptSpec(prompt=prompt, system=STRICT_JSON_SYSTEM, temperature=0.2)


def _length_hint(length: str, longer: str) -> str:
    if length == "shorter":
        return "Make it more concise"
    if length == "longer":
        return longer
    return "Keep similar length"


def _as_text(content: Any) -> str:
    if isinstance(content, list):
        return " ".join(str(c) for c in content)
    return str(content)


def build_rewrite_prompt(
    section: str,
    content: Any,
    tone: str = "professional",
    length: str = "similar",
    instructions: str = "",
) -> PromptSpec:
    """Section-aware rewrite prompt. Unknown sections get the generic template."""
    if section == "summary":
        body = (
            "You are a professional CV writer specializing in software engineering roles.\n"
            "Rewrite the following professional summary to be more compelling and ATS-optimized.\n\n"
            f"Original summary: \"{_as_text(content)}\"\n\n"
            "Requirements:\n"
            f"- Tone: {tone}\n"
            f"- Length: {_length_hint(length, 'Expand with more details')}\n"
            "- Focus on technical expertise, leadership, and quantifiable achievements\n"
            "- Include relevant keywords for software engineering roles\n"
            "- Make it impactful and results-oriented\n\n"
            f"Additional instructions: {instructions}\n\n"
            "Return only the rewritten summary, no explanations."
        )
    elif section == "experience":
        body = (
            "You are a professional CV writer. Rewrite the following job experience description to be more impactful.\n\n"
            f"Original description: {_as_text(content)}\n\n"
            "Requirements:\n"
            f"- Tone: {tone}\n"
            f"- Length: {_length_hint(length, 'Add more technical details')}\n"
            "- Use action verbs and quantifiable achievements\n"
            "- Focus on technical impact and business value\n"
            "- Format as bullet points if multiple responsibilities\n\n"
            f"Additional instructions: {instructions}\n\n"
            "Return only the rewritten description(s), no explanations."
        )
    elif section == "project":
        body = (
            "You are a professional CV writer. Rewrite the following project description to showcase technical skills and impact.\n\n"
            f"Original description: \"{_as_text(content)}\"\n\n"
            "Requirements:\n"
            f"- Tone: {tone}\n"
            f"- Length: {_length_hint(length, 'Add more technical details')}\n"
            "- Highlight technical challenges solved\n"
            "- Mention technologies used effectively\n"
            "- Show measurable impact or results\n\n"
            f"Additional instructions: {instructions}\n\n"
            "Return only the rewritten project description, no explanations."
        )
    elif section == "skills":
        body = (
            "You are a professional CV writer. Optimize the following skills section for ATS and recruiter appeal.\n\n"
            f"Original skills: {_dump(content)}\n\n"
            "Requirements:\n"
            "- Organize skills logically by category\n"
            "- Include industry-standard terminology\n"
            "- Prioritize in-demand technologies\n"
            "- Remove outdated or irrelevant skills\n\n"
            f"Additional instructions: {instructions}\n\n"
            "Return only the optimized skills structure, no explanations."
        )
    else:
        body = (
            f"Rewrite the {section} content. Requirements: tone={tone}, length={length}. {instructions}\n"
            f"Original: {_as_text(content)}. Return only the rewritten text."
        )
    # Gemini rewrites get the bare prompt
    return PromptSpec(prompt=body, system=REWRITE_SYSTEM, temperature=0.7, prefix_system=False)


def build_cover_letter_prompt(
    cv_data: Any,
    job_description: str,
    company: Optional[str] = None,
    position: Optional[str] = None,
) -> PromptSpec:
    prompt = (
        "You are a professional cover letter writer. Generate a compelling, personalized cover letter. "
        "Use contact info, recent experience and skills. Keep to 3-4 paragraphs, end with a strong closing.\n"
        "Instructions:\n"
        "1. Highlight relevant experience and skills that match the job requirements\n"
        "2. Include specific examples from the CV that demonstrate qualifications\n"
        "3. Address the hiring manager professionally (use \"Dear Hiring Manager\" if no name provided)\n"
        "4. Use the person's contact information as the header and end with a professional closing\n"
        "Generate only the cover letter content without any additional commentary.\n"
        f"CV: {_dump(cv_data)}\n"
        f"Company: {company or 'The Company'}\n"
        f"Position: {position or 'The Position'}\n"
        f"Job Description: {job_description}"
    )
    return PromptSpec(prompt=prompt, system=None, temperature=0.7)


def build_suggestions_prompt(cv_data: Any, target_role: str = "Software Engineer") -> PromptSpec:
    prompt = (
        f"You are a senior technical recruiter specializing in {target_role} positions.\n"
        "Analyze the CV and provide specific, actionable suggestions for improvement.\n\n"
        f"CV Data:\n{_dump(cv_data, indent=2)}\n\n"
        f"Target Role: {target_role}\n\n"
        "Provide suggestions in these categories:\n"
        "- ADD: New content that should be added (missing skills, experiences, projects)\n"
        "- IMPROVE: Existing content that needs enhancement\n"
        "- REMOVE: Content that is outdated or irrelevant\n"
        "- REORDER: Better organization/prioritization of existing content\n\n"
        "Focus on:\n"
        f"1. Technical skill alignment with {target_role} requirements\n"
        "2. Industry-relevant keywords and technologies\n"
        "3. Quantifiable achievements and impact\n"
        "4. ATS optimization\n"
        "5. Career progression demonstration\n\n"
        "Prioritize suggestions by potential impact on landing interviews.\n"
        "Return JSON only, exactly in this shape:\n"
        f"{SUGGESTIONS_SCHEMA}"
    )
    return PromptSpec(prompt=prompt, system=SUGGESTIONS_SYSTEM, temperature=0.2)
