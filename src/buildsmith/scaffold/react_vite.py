"""Template sources for the ``react-vite-tailwind`` stack."""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Tuple

PACKAGE_JSON = """{
  "name": "{packageName}",
  "private": true,
  "version": "0.1.0",
  "description": "{description}",
  "type": "module",
  "scripts": {
    "dev": "vite",
    "build": "tsc && vite build",
    "preview": "vite preview"
  },
  "dependencies": {
    "react": "^18.3.1",
    "react-dom": "^18.3.1",
    "react-error-boundary": "^4.0.11"
  },
  "devDependencies": {
    "@types/react": "^18.3.3",
    "@types/react-dom": "^18.3.0",
    "@vitejs/plugin-react": "^4.3.1",
    "autoprefixer": "^10.4.19",
    "postcss": "^8.4.40",
    "tailwindcss": "^3.4.7",
    "typescript": "^5.5.3",
    "vite": "^5.3.4"
  }
}
"""

VITE_CONFIG = """import { defineConfig } from 'vite';
import react from '@vitejs/plugin-react';

export default defineConfig({
  plugins: [react()],
});
"""

TSCONFIG = """{
  "compilerOptions": {
    "target": "ES2020",
    "useDefineForClassFields": true,
    "lib": ["ES2020", "DOM", "DOM.Iterable"],
    "module": "ESNext",
    "skipLibCheck": true,
    "moduleResolution": "bundler",
    "resolveJsonModule": true,
    "isolatedModules": true,
    "noEmit": true,
    "jsx": "react-jsx",
    "strict": true,
    "noFallthroughCasesInSwitch": true
  },
  "include": ["src"],
  "references": [{ "path": "./tsconfig.node.json" }]
}
"""

TSCONFIG_NODE = """{
  "compilerOptions": {
    "composite": true,
    "skipLibCheck": true,
    "module": "ESNext",
    "moduleResolution": "bundler",
    "allowSyntheticDefaultImports": true,
    "strict": true
  },
  "include": ["vite.config.ts"]
}
"""

TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
export default {
  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],
  darkMode: 'class',
  theme: {
    extend: {},
  },
  plugins: [],
};
"""

POSTCSS_CONFIG = """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
};
"""

INDEX_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <meta name="description" content="{description}" />
    <title>{projectName}</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>
"""

INDEX_CSS = """@tailwind base;
@tailwind components;
@tailwind utilities;

body {
  @apply antialiased;
}
"""

ENV_EXAMPLE = """VITE_APP_NAME="{projectName}"
"""

README = """# {projectName}

{description}

## Getting started

```bash
npm install
npm run dev
```

Build a production bundle with `npm run build`.
"""

MAIN_TSX = """import React from 'react';
import ReactDOM from 'react-dom/client';
import { ErrorBoundary } from 'react-error-boundary';
import App from './App';
import ErrorFallback from './components/ErrorFallback';
import './index.css';

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <ErrorBoundary FallbackComponent={ErrorFallback}>
      <App />
    </ErrorBoundary>
  </React.StrictMode>,
);
"""

SCAFFOLD_FILES: Dict[str, str] = {
    "package.json": PACKAGE_JSON,
    "vite.config.ts": VITE_CONFIG,
    "tsconfig.json": TSCONFIG,
    "tsconfig.node.json": TSCONFIG_NODE,
    "tailwind.config.js": TAILWIND_CONFIG,
    "postcss.config.js": POSTCSS_CONFIG,
    "index.html": INDEX_HTML,
    "src/index.css": INDEX_CSS,
    ".env.example": ENV_EXAMPLE,
    "README.md": README,
}

# Component fallbacks. Placeholders are limited to componentName, heading,
# sectionId and projectName; JSX expressions must not reuse those names.

NAVBAR = """interface NavbarProps {
  links?: { label: string; href: string }[];
}

const defaultLinks = [
  { label: 'Home', href: '#home' },
  { label: 'Services', href: '#services' },
  { label: 'Contact', href: '#contact' },
];

export default function Navbar({ links = defaultLinks }: NavbarProps) {
  return (
    <header className="border-b bg-white dark:bg-gray-900">
      <nav aria-label="Main navigation" className="mx-auto flex max-w-6xl items-center justify-between px-4 py-3 md:px-8">
        <a href="#home" className="text-lg font-bold">{projectName}</a>
        <ul className="flex gap-4 text-sm md:gap-6">
          {links.map((link) => (
            <li key={link.href}>
              <a href={link.href} className="transition hover:text-blue-600 focus:outline-none focus-visible:ring">
                {link.label}
              </a>
            </li>
          ))}
        </ul>
      </nav>
    </header>
  );
}
"""

FOOTER = """interface FooterProps {
  year?: number;
}

export default function Footer({ year = new Date().getFullYear() }: FooterProps) {
  return (
    <footer className="border-t px-4 py-8 text-sm text-gray-600 md:px-8">
      <div className="mx-auto flex max-w-6xl flex-col gap-2 md:flex-row md:justify-between">
        <p>&copy; {year} {projectName}. All rights reserved.</p>
        <a href="mailto:hello@example.com" className="transition hover:text-blue-600">
          hello@example.com
        </a>
      </div>
    </footer>
  );
}
"""

ERROR_FALLBACK = """import type { FallbackProps } from 'react-error-boundary';

export default function ErrorFallback({ error, resetErrorBoundary }: FallbackProps) {
  return (
    <div role="alert" className="mx-auto max-w-lg p-6 text-center md:p-10">
      <h2 className="text-xl font-semibold">Something went wrong</h2>
      <p className="mt-2 text-sm text-red-600">{error instanceof Error ? error.message : String(error)}</p>
      <button
        type="button"
        onClick={resetErrorBoundary}
        className="mt-4 rounded bg-blue-600 px-4 py-2 text-white transition hover:bg-blue-700 focus:outline-none focus:ring"
      >
        Try again
      </button>
    </div>
  );
}
"""

LOADING_SPINNER = """interface LoadingSpinnerProps {
  label?: string;
}

export default function LoadingSpinner({ label = 'Loading' }: LoadingSpinnerProps) {
  return (
    <div role="status" aria-live="polite" className="flex items-center justify-center gap-3 p-4 md:p-6">
      <span className="h-6 w-6 animate-spin rounded-full border-2 border-blue-600 border-t-transparent" aria-hidden="true" />
      <span className="text-sm text-gray-600">{label}</span>
    </div>
  );
}
"""

BUTTON = """import type { ButtonHTMLAttributes, ReactNode } from 'react';

interface ButtonProps extends ButtonHTMLAttributes<HTMLButtonElement> {
  variant?: 'primary' | 'secondary';
  children: ReactNode;
}

const styles = {
  primary: 'bg-blue-600 text-white hover:bg-blue-700',
  secondary: 'border border-gray-300 text-gray-900 hover:bg-gray-50',
};

export default function Button({ variant = 'primary', children, className = '', ...rest }: ButtonProps) {
  return (
    <button
      type="button"
      className={`rounded-md px-4 py-2 text-sm font-medium transition focus:outline-none focus:ring-2 md:text-base ${styles[variant]} ${className}`}
      {...rest}
    >
      {children}
    </button>
  );
}
"""

CARD = """import type { ReactNode } from 'react';

interface CardProps {
  title: string;
  body: string;
  footer?: ReactNode;
}

export default function Card({ title, body, footer }: CardProps) {
  return (
    <article className="rounded-lg border border-gray-200 p-6 shadow-sm transition hover:shadow-md dark:border-gray-700 md:p-8">
      <h3 className="text-lg font-semibold">{title}</h3>
      <p className="mt-2 text-gray-600 dark:text-gray-300">{body}</p>
      {footer ? <div className="mt-4">{footer}</div> : null}
    </article>
  );
}
"""

SEO = """import { useEffect } from 'react';

interface SEOProps {
  title: string;
  description?: string;
}

export default function SEO({ title, description }: SEOProps) {
  useEffect(() => {
    document.title = title;
    if (description) {
      let meta = document.querySelector('meta[name="description"]');
      if (!meta) {
        meta = document.createElement('meta');
        meta.setAttribute('name', 'description');
        document.head.appendChild(meta);
      }
      meta.setAttribute('content', description);
    }
  }, [title, description]);

  return <span className="sr-only md:hidden" aria-live="polite">{title}</span>;
}
"""

SECTION = """interface {componentName}Props {
  title?: string;
}

const items = [
  { title: 'Planning', body: 'We map out goals and milestones with you before any work begins.' },
  { title: 'Delivery', body: 'Each release is reviewed, tested and shipped on a predictable schedule.' },
  { title: 'Support', body: 'Our team stays available after launch for updates and questions.' },
];

export default function {componentName}({ title = '{heading}' }: {componentName}Props) {
  return (
    <section id="{sectionId}" aria-labelledby="{sectionId}-heading" className="px-4 py-12 md:px-8 lg:py-16">
      <h2 id="{sectionId}-heading" className="text-2xl font-semibold md:text-3xl">
        {title}
      </h2>
      <ul className="mt-6 grid gap-6 sm:grid-cols-2 lg:grid-cols-3">
        {items.map((item) => (
          <li key={item.title} className="rounded-lg border p-6 transition hover:shadow-md">
            <h3 className="font-medium">{item.title}</h3>
            <p className="mt-2 text-sm text-gray-600 dark:text-gray-300">{item.body}</p>
          </li>
        ))}
      </ul>
    </section>
  );
}
"""

COMPONENT_FALLBACKS: Dict[str, str] = {
    "Navbar": NAVBAR,
    "Footer": FOOTER,
    "ErrorFallback": ERROR_FALLBACK,
    "LoadingSpinner": LOADING_SPINNER,
    "Button": BUTTON,
    "Card": CARD,
    "SEO": SEO,
}

APP = """import { Suspense } from 'react';
{imports}

export default function App() {
  return (
    <div className="min-h-screen bg-white text-gray-900 dark:bg-gray-900 dark:text-gray-100">
{header}
      <main id="home" className="mx-auto max-w-6xl">
        <Suspense fallback={{loadingFallback}}>
{sections}
        </Suspense>
      </main>
{footer}
    </div>
  );
}
"""

# Rendered once per app, never placed in the page body.
_NOT_SECTIONS = {"ErrorFallback", "LoadingSpinner", "Button", "Card", "SEO", "Navbar", "Footer"}


def humanize(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name).strip() or name


def section_id(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", humanize(name).lower()).strip("-") or "section"


def component_template(name: str) -> Tuple[str, Dict[str, str]]:
    """Return the fallback template for ``name`` and its extra variables."""

    variables = {"componentName": name, "heading": humanize(name), "sectionId": section_id(name)}
    return COMPONENT_FALLBACKS.get(name, SECTION), variables


def page_template(name: str) -> Tuple[str, Dict[str, str]]:
    """Pages always fall back to a plain section, whatever their name."""

    return SECTION, {"componentName": name, "heading": humanize(name), "sectionId": section_id(name)}


def app_layout(components: Iterable[str]) -> Dict[str, str]:
    """Raw ``imports``/``header``/``sections``/``footer`` blocks for :data:`APP`."""

    names: List[str] = list(dict.fromkeys(components))
    used = [name for name in names if name not in {"ErrorFallback", "Button", "Card"}]
    imports = [f"import {name} from './components/{name}';" for name in used]

    header: List[str] = []
    if "SEO" in names:
        header.append('      <SEO title="{projectName}" description="{description}" />')
    if "Navbar" in names:
        header.append("      <Navbar />")
    sections = [f"          <{name} />" for name in names if name not in _NOT_SECTIONS]
    footer = ["      <Footer />"] if "Footer" in names else []
    loading = "<LoadingSpinner />" if "LoadingSpinner" in names else "null"

    return {
        "imports": "\n".join(imports),
        "header": "\n".join(header),
        "sections": "\n".join(sections),
        "footer": "\n".join(footer),
        "loadingFallback": loading,
    }
