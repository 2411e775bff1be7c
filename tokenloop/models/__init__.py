#  Copyright (c) 2025, Anemll  All rights reserved.
#
#  Use of this source code is governed by a MIT license that can be
#  found in the LICENSE.txt file or at https://opensource.org/license/mit

from .base_engine import BaseEngine
from .sampling import apply_repeat_penalty, sample_top_p_top_k
