from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NOT_AVAILABLE = "N/A"
ASPECT_KEY = "aspect"


class ResearchRequest(BaseModel):
    topic: str

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("topic must not be empty")
        return v


class ResearchResult(BaseModel):
    """Canonical result shape handed to the presentation layer.

    Serialized with camelCase keys (``researchBrief``, ``comparisonTable``,
    ``paperKeys``, ``notebookCode``). Every table row holds ``aspect`` plus
    one value per paper key.
    """

    model_config = ConfigDict(populate_by_name=True)

    research_brief: str = Field(alias="researchBrief")
    comparison_table: list[dict[str, str]] = Field(default=[], alias="comparisonTable")
    paper_keys: list[str] = Field(default=[], alias="paperKeys")
    notebook_code: str = Field(alias="notebookCode")

    @model_validator(mode="after")
    def _check_rectangular(self) -> "ResearchResult":
        if len(set(self.paper_keys)) != len(self.paper_keys):
            raise ValueError("paperKeys must be unique")
        expected = {ASPECT_KEY, *self.paper_keys}
        for i, row in enumerate(self.comparison_table):
            if set(row) != expected:
                raise ValueError(f"comparisonTable row {i} does not match paperKeys")
        return self

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class NotebookRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str = ""
    notebook_code: str = Field(alias="notebookCode")


class ErrorResponse(BaseModel):
    error: str
