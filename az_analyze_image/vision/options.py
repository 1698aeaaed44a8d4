"""
Typed request options and their mapping to query parameters.

The same mapping is used for both call shapes (image referenced by URL and
image bytes in the request body). Validation happens locally and raises
``ValidationError`` before any network call.
"""

import re
from dataclasses import dataclass, field, fields
from typing import Iterable, List, Optional, Tuple

from az_analyze_image.errors import ValidationError
from az_analyze_image.vision.versions import (
    ApiVersion,
    Details,
    DescriptionExclude,
    VisualFeature,
    get_profile,
)

MODEL_VERSION_RE = re.compile(r"(latest|\d{4}-\d{2}-\d{2})(-preview)?")

SMARTCROPS_MIN_ASPECT_RATIO = 0.75
SMARTCROPS_MAX_ASPECT_RATIO = 1.8


def _dedupe(values: Optional[Iterable], enum_cls) -> Tuple:
    if values is None:
        return ()
    if isinstance(values, (str, enum_cls)):
        values = [values]
    try:
        return tuple(dict.fromkeys(enum_cls(v) for v in values))
    except ValueError as e:
        raise ValidationError(str(e)) from e


@dataclass(frozen=True)
class AnalyzeImageOptions:
    """
    Image analysis parameters.

    Attributes:
        features: Visual features to compute. Order is kept, duplicates dropped.
        language: Language for the generated output, e.g. "en", "es".
        model_version: AI model version, "latest" or a dated version.
        details: (v3.2) Domain-specific details, Celebrities and/or Landmarks.
        description_exclude: (v3.2) Domain models to switch off when
            generating the description.
        model_name: (v4.0) Name of a custom trained model.
        gender_neutral_caption: (v4.0) Generate gender neutral captions.
        smartcrops_aspect_ratios: (v4.0) Aspect ratios (width / height) for
            smart crops, each between 0.75 and 1.8.
    """
    features: Tuple[VisualFeature, ...] = ()
    language: Optional[str] = None
    model_version: Optional[str] = None
    details: Tuple[Details, ...] = ()
    description_exclude: Tuple[DescriptionExclude, ...] = ()
    model_name: Optional[str] = None
    gender_neutral_caption: Optional[bool] = None
    smartcrops_aspect_ratios: Tuple[float, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "features", _dedupe(self.features, VisualFeature))
        object.__setattr__(self, "details", _dedupe(self.details, Details))
        object.__setattr__(
            self, "description_exclude", _dedupe(self.description_exclude, DescriptionExclude)
        )
        ratios = self.smartcrops_aspect_ratios
        if isinstance(ratios, (int, float)):
            ratios = [ratios]
        try:
            object.__setattr__(
                self, "smartcrops_aspect_ratios", tuple(float(r) for r in ratios or ())
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid smart crop aspect ratio: {e}") from e

    def is_empty(self) -> bool:
        """True when the options request nothing from the service."""
        return not self.features and not self.model_name

    def validate(self, api_version) -> None:
        """
        Check the options against an API version.

        Raises:
            ValidationError: On an unsupported feature, an option that belongs
                to the other version or a malformed value.
        """
        profile = get_profile(api_version)

        unsupported = [f for f in self.features if not profile.supports(f)]
        if unsupported:
            raise ValidationError(
                f"Feature(s) {', '.join(f.value for f in unsupported)} "
                f"not supported by API version {profile.version.value}",
                {
                    "api_version": profile.version.value,
                    "unsupported": [f.value for f in unsupported],
                }
            )

        for name in _version_specific_options():
            if name in profile.options:
                continue
            if _is_set(getattr(self, name)):
                raise ValidationError(
                    f"Option '{name}' is not supported by API version {profile.version.value}",
                    {"api_version": profile.version.value, "option": name}
                )

        if self.language is not None and not self.language.strip():
            raise ValidationError("Language must not be empty when given")

        if self.model_version is not None and not MODEL_VERSION_RE.fullmatch(self.model_version):
            raise ValidationError(
                f"Invalid model version {self.model_version!r}; "
                "expected 'latest' or YYYY-MM-DD, optionally with '-preview'"
            )

        if self.model_name is not None and not self.model_name.strip():
            raise ValidationError("Model name must not be empty when given")

        for ratio in self.smartcrops_aspect_ratios:
            if not SMARTCROPS_MIN_ASPECT_RATIO <= ratio <= SMARTCROPS_MAX_ASPECT_RATIO:
                raise ValidationError(
                    f"Smart crop aspect ratio {ratio} outside "
                    f"[{SMARTCROPS_MIN_ASPECT_RATIO}, {SMARTCROPS_MAX_ASPECT_RATIO}]"
                )

    def to_query_params(self, api_version) -> List[Tuple[str, str]]:
        """
        Map the options to query parameters for an API version.

        Only non-default values are included. Call ``validate`` first;
        features the version does not know raise ``ValidationError``.
        """
        profile = get_profile(api_version)
        params: List[Tuple[str, str]] = []

        if self.features:
            try:
                wire = [profile.feature_wire_names[f] for f in self.features]
            except KeyError as e:
                raise ValidationError(
                    f"Feature {e.args[0].value} not supported by API version {profile.version.value}"
                ) from e
            params.append((profile.features_param, ",".join(wire)))

        if profile.version is ApiVersion.V3_2:
            if self.details:
                params.append(("details", ",".join(d.value for d in self.details)))
            if self.language:
                params.append(("language", self.language))
            if self.description_exclude:
                params.append((
                    "descriptionExclude",
                    ",".join(d.value for d in self.description_exclude)
                ))
            if self.model_version:
                params.append(("model-version", self.model_version))
        else:
            if self.gender_neutral_caption is not None:
                params.append(("gender-neutral-caption", str(self.gender_neutral_caption).lower()))
            if self.language:
                params.append(("language", self.language))
            if self.model_name:
                params.append(("model-name", self.model_name))
            if self.model_version:
                params.append(("model-version", self.model_version))
            if self.smartcrops_aspect_ratios:
                params.append((
                    "smartcrops-aspect-ratios",
                    ",".join(_format_ratio(r) for r in self.smartcrops_aspect_ratios)
                ))

        return params


def _format_ratio(ratio: float) -> str:
    return repr(ratio)


def _is_set(value) -> bool:
    return value is not None and value != () and value != ""


def _version_specific_options():
    names = {f.name for f in fields(AnalyzeImageOptions)}
    return sorted(
        name for name in get_profile(ApiVersion.V3_2).options | get_profile(ApiVersion.V4_0).options
        if name in names
    )
