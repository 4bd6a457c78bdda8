# --- Custom log formatter for A4 wrapping ---
import logging
import textwrap
import json
import re
import copy

SENSITIVE_KEYS = ('access_token', 'refresh_token', 'password', 'verification_code', 'reset_token', 'token')


class A4WrapFormatter(logging.Formatter):
    def mask_tokens_in_dict(self, d):
        d = copy.deepcopy(d)
        for key in SENSITIVE_KEYS:
            if key in d and d[key]:
                value = str(d[key])
                d[key] = value[:8] + '...' if 'token' in key else '***'
        return d

    def pretty_dict(self, d):
        # Only pretty-print if it's a dict
        if isinstance(d, dict):
            return json.dumps(self.mask_tokens_in_dict(d), indent=4, ensure_ascii=False, default=str)
        return str(d)

    def mask_and_pretty(self, msg):
        # Pretty-print JSON objects logged after resp= or data=
        def replacer(match):
            try:
                d = json.loads(match.group(2))
                return match.group(1) + '=\n' + self.pretty_dict(d)
            except ValueError:
                return match.group(0)
        msg = re.sub(r'(resp|data)=({[\s\S]*?})(?=\s|$)', replacer, msg)
        # Mask bearer tokens that slipped into free text
        msg = re.sub(r'(Bearer\s+)([A-Za-z0-9\-_\.]{12})[A-Za-z0-9\-_\.]+', r'\1\2...', msg)
        return msg

    def format(self, record):
        msg = super().format(record)
        msg = self.mask_and_pretty(msg)
        # Split at 100 chars for A4 width
        lines = []
        for line in msg.splitlines():
            lines.extend(textwrap.wrap(line, width=100, replace_whitespace=False, drop_whitespace=False) or [''])
        return '\n'.join(lines)
