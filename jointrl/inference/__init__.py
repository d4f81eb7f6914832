from .backends import compile_model, StanModel, DrawCollection
from .models import (GenerativeModel,
                     PostHocModel,
                     SequentialModel,
                     RecoveryEstimate,
                     get_model)
