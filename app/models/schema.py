from __future__ import annotations
from typing import Annotated, Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

YEAR_MONTH = r"^\d{4}-\d{2}$"
YearMonth = Annotated[str, Field(pattern=YEAR_MONTH)]


class _CamelModel(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="allow")


class ContactInfo(_CamelModel):
	name: str
	title: Optional[str] = None
	email: Optional[str] = None
	phone: Optional[str] = None
	location: Optional[str] = None
	linkedin: Optional[str] = None
	github: Optional[str] = None
	website: Optional[str] = None


class Experience(_CamelModel):
	id: str
	company: str
	position: str
	start_date: YearMonth = Field(alias="startDate")
	# None means the role is ongoing
	end_date: Optional[YearMonth] = Field(default=None, alias="endDate")
	location: str
	description: List[str]
	technologies: Optional[List[str]] = None

	@property
	def is_current(self) -> bool:
		return self.end_date is None


class Education(_CamelModel):
	id: str
	institution: str
	degree: str
	field: Optional[str] = None
	start_date: YearMonth = Field(alias="startDate")
	end_date: YearMonth = Field(alias="endDate")
	location: str
	description: Optional[str] = None


class Project(_CamelModel):
	id: str
	name: str
	description: str
	technologies: List[str]
	url: Optional[str] = None
	github: Optional[str] = None


class Skill(_CamelModel):
	category: str
	items: List[str]


class CVData(_CamelModel):
	contact: ContactInfo
	summary: str
	experience: List[Experience] = []
	education: List[Education] = []
	projects: List[Project] = []
	skills: List[Skill] = []

	@model_validator(mode="after")
	def _unique_ids(self) -> "CVData":
		for name in ("experience", "education", "projects"):
			ids = [item.id for item in getattr(self, name)]
			if len(ids) != len(set(ids)):
				raise ValueError(f"duplicate id in {name}")
		return self


# --- AI output schemas ---

Score = Annotated[float, Field(ge=0, le=100)]


class ScoredFeedback(BaseModel):
	score: Score
	feedback: str


class KeywordOptimization(BaseModel):
	score: Score
	suggestions: List[str]


class SectionScores(BaseModel):
	summary: ScoredFeedback
	experience: ScoredFeedback
	skills: ScoredFeedback
	projects: ScoredFeedback
	education: ScoredFeedback


class CVAnalysis(BaseModel):
	overallScore: Score
	strengths: List[str]
	improvements: List[str]
	missingElements: List[str]
	industryAlignment: ScoredFeedback
	keywordOptimization: KeywordOptimization
	sections: SectionScores


class Suggestion(BaseModel):
	type: Literal["add", "improve", "remove", "reorder"]
	section: str
	title: str
	description: str
	priority: Literal["high", "medium", "low"]
	estimatedImpact: str
	# May be omitted, but never null
	example: Optional[str] = None

	@field_validator("example", mode="before")
	@classmethod
	def _example_not_null(cls, value: Any) -> Any:
		if value is None:
			raise ValueError("example must be a string when present")
		return value


class SuggestionList(BaseModel):
	suggestions: List[Suggestion]


class ProviderRequest(BaseModel):
	"""One inbound AI request: built from the body, consumed by a single provider call."""

	provider: Literal["openai", "google"] = "openai"
	payload: Dict[str, Any]
	options: Dict[str, Any] = {}
