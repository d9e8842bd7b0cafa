"""iOS and macOS platforms: GoogleService-Info.plist, pods/SPM, AppDelegate init.

Patches, in order:
1. Dependency manifest - Podfile pods, or the firebase-ios-sdk package in
   Package.swift. A bare Xcode project gets manual SPM steps.
2. Entry point - the existing AppDelegate, or one generated for the
   project's dialect: legacy lifecycle (Swift or Objective-C) or SwiftUI,
   where a delegate adaptor is wired into the `@main` App struct.
3. Init call - FirebaseApp.configure() / [FIRApp configure] at the top of
   the launch callback, plus the FirebaseCore import.
4. Push delegate methods when FirebaseAppDelegateProxyEnabled is off.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path

from core import probe
from core.config import FIREBASE_IOS_SDK_URL, FIREBASE_IOS_SDK_VERSION
from core.console import print_status, print_success, print_warning
from core.dependencies import is_available, run_tool
from core.patching import (
    InjectionReport,
    PatchResult,
    PatchStatus,
    add_import,
    create_file,
    detect_newline,
    find_line,
    insert_after_anchor,
    insert_line_after_match,
    leading_whitespace,
    patch_file,
)
from platforms.base import GOOGLE_SERVICE_INFO_PLIST, Platform

logger = logging.getLogger("nativefire.platforms.apple")

TEMPLATES_DIR = Path(__file__).parent / "templates"

PODS_MARKER = "Firebase/Core"
FIREBASE_PODS = ["pod 'Firebase/Core'", "pod 'Firebase/Analytics'"]
SPM_MARKER = "firebase-ios-sdk"
SPM_PACKAGE_ENTRY = f'.package(url: "{FIREBASE_IOS_SDK_URL}", from: "{FIREBASE_IOS_SDK_VERSION}")'
SPM_PRODUCT_ENTRY = '.product(name: "FirebaseCore", package: "firebase-ios-sdk")'

SWIFT_INIT_MARKER = "FirebaseApp.configure()"
OBJC_INIT_MARKER = "[FIRApp configure]"
ADAPTOR_MARKER = "ApplicationDelegateAdaptor"
PUSH_MARKER = "didRegisterForRemoteNotificationsWithDeviceToken"

SPM_STEPS = [
    "Open your project in Xcode",
    "File > Add Package Dependencies...",
    f"Enter {FIREBASE_IOS_SDK_URL}",
    f"Select version {FIREBASE_IOS_SDK_VERSION} or later",
    "Add the FirebaseCore product to your app target",
]

_TARGET_DO = re.compile(r"^\s*target\s+.*\bdo\s*(#.*)?$")
_SPM_TARGETS = re.compile(r"^\s*targets\s*:\s*\[\s*(//.*)?$")
_SPM_DEPS = re.compile(r"\bdependencies\s*:\s*\[")
_SPM_TARGET_DECL = re.compile(r"\.(?:executableTarget|testTarget|target)\s*\(")
_APP_STRUCT = re.compile(r"\bstruct\s+\w+\s*:\s*[^{]*\bApp\b")
_PROXY_DISABLED = re.compile(
    r"<key>\s*FirebaseAppDelegateProxyEnabled\s*</key>\s*(<false\s*/>|<false>\s*</false>|<string>\s*NO\s*</string>)",
    re.I,
)


class Language(str, Enum):
    SWIFT = "swift"
    OBJC = "objc"


class Lifecycle(str, Enum):
    LEGACY = "legacy"
    DECLARATIVE = "declarative"


@dataclass(frozen=True)
class Dialect:
    language: Language
    lifecycle: Lifecycle


def load_template(name: str, values: dict[str, str] | None = None) -> str:
    """Read a template under templates/ and replace [KEY] placeholders."""
    content = (TEMPLATES_DIR / name).read_text(encoding="utf-8")
    for key, value in (values or {}).items():
        content = content.replace(f"[{key}]", value)
    return content


def swift_type_name(name: str) -> str:
    """Turn an Xcode project name into a valid Swift type name prefix."""
    cleaned = re.sub(r"[^0-9A-Za-z_]", "", name)
    if not cleaned:
        return "My"
    if cleaned[0].isdigit():
        cleaned = f"App{cleaned}"
    return cleaned[0].upper() + cleaned[1:]


# ---------------------------------------------------------------------------
# Transforms
# ---------------------------------------------------------------------------


def add_pods(content: str) -> str | None:
    """Add Firebase pods to the first `target ... do` block."""
    return insert_after_anchor(content, _TARGET_DO, FIREBASE_PODS, step="  ")


def _add_array_entry(lines: list[str], idx: int, entry: str, newline: str) -> None:
    line = lines[idx]
    m = _SPM_DEPS.search(line)
    rest = line[m.end():]
    if "]" in rest:
        sep = "" if rest.lstrip().startswith("]") else ", "
        lines[idx] = f"{line[:m.end()]}{entry}{sep}{rest}"
    else:
        indent = leading_whitespace(line) + "    "
        lines.insert(idx + 1, f"{indent}{entry},{newline}")


def add_spm_dependency(content: str) -> str | None:
    """Add firebase-ios-sdk to Package.swift and FirebaseCore to the first target."""
    newline = detect_newline(content)
    lines = content.splitlines(keepends=True)
    targets = find_line(lines, _SPM_TARGETS)
    if targets < 0:
        return None

    package_deps = find_line(lines, _SPM_DEPS)
    if 0 <= package_deps < targets:
        _add_array_entry(lines, package_deps, SPM_PACKAGE_ENTRY, newline)
    else:
        indent = leading_whitespace(lines[targets])
        lines[targets:targets] = [
            f"{indent}dependencies: [{newline}",
            f"{indent}    {SPM_PACKAGE_ENTRY},{newline}",
            f"{indent}],{newline}",
        ]

    targets = find_line(lines, _SPM_TARGETS)
    first_target = find_line(lines, _SPM_TARGET_DECL, targets)
    if first_target >= 0:
        next_target = find_line(lines, _SPM_TARGET_DECL, first_target + 1)
        deps = find_line(lines, _SPM_DEPS, first_target)
        if deps >= 0 and (next_target < 0 or deps < next_target):
            _add_array_entry(lines, deps, SPM_PRODUCT_ENTRY, newline)
    return "".join(lines)


def insert_in_method_body(
    content: str,
    signature: str,
    declaration: str,
    statement: str,
    step: str = "    ",
) -> str | None:
    """Insert statement as the first line of a method body.

    signature matches any line of the method's declaration (which may span
    lines); the statement goes after the line holding the opening brace,
    at the indentation of the existing body, or one step deeper than the
    declaration when the body is empty.
    """
    lines = content.splitlines(keepends=True)
    sig = find_line(lines, signature)
    if sig < 0:
        return None

    decl = sig
    decl_re = re.compile(declaration)
    for i in range(sig, max(sig - 4, -1), -1):
        if decl_re.search(lines[i]):
            decl = i
            break

    for brace in range(sig, min(sig + 6, len(lines))):
        pos = lines[brace].find("{")
        if pos < 0:
            continue
        if lines[brace][pos + 1:].strip():
            # Body continues on the brace line, not a recognised shape
            return None
        indent = leading_whitespace(lines[decl]) + step
        body = lines[brace + 1] if brace + 1 < len(lines) else ""
        if body.strip() and not body.lstrip().startswith("}"):
            if len(leading_whitespace(body)) > len(leading_whitespace(lines[decl])):
                indent = leading_whitespace(body)
        return insert_line_after_match(content, re.escape(lines[brace].rstrip("\r\n")), statement, indent=indent, start=brace)
    return None


def add_swift_init(content: str, launch_signature: str, framework_imports: list[str]) -> str | None:
    patched = insert_in_method_body(content, launch_signature, r"\bfunc\b", "FirebaseApp.configure()")
    if patched is None:
        return None
    return add_import(
        patched,
        "import FirebaseCore",
        after_patterns=[rf"^import\s+{name}\b" for name in framework_imports],
        replace_patterns=[r"^import\s+Firebase\s*$"],
    )


def add_objc_init(content: str, launch_signature: str) -> str | None:
    patched = insert_in_method_body(content, launch_signature, r"^\s*-\s*\(", "[FIRApp configure];")
    if patched is None:
        return None
    if "#import <FirebaseCore/FirebaseCore.h>" in patched:
        return patched
    return add_import(
        patched,
        "@import FirebaseCore;",
        after_patterns=[r'^#import\s+"AppDelegate\.h"'],
        replace_patterns=[r"^@import\s+Firebase\s*;", r"^#import\s+<Firebase/Firebase\.h>"],
    )


def add_delegate_adaptor(content: str, attribute: str) -> str | None:
    """Add `<attribute>(AppDelegate.self) var delegate` to the App struct."""
    lines = content.splitlines(keepends=True)
    idx = find_line(lines, _APP_STRUCT)
    if idx < 0:
        return None
    brace = idx if "{" in lines[idx] else idx + 1
    if brace >= len(lines) or "{" not in lines[brace]:
        return None
    indent = leading_whitespace(lines[idx]) + "    "
    return insert_line_after_match(
        content, re.escape(lines[brace].rstrip("\r\n")),
        f"{attribute}(AppDelegate.self) var delegate", indent=indent, start=brace,
    )


def _class_closing_line(lines: list[str], start: int) -> int:
    """Index of the line closing the brace block opened at or after start."""
    depth = 0
    opened = False
    for i in range(start, len(lines)):
        depth += lines[i].count("{") - lines[i].count("}")
        if "{" in lines[i]:
            opened = True
        if opened and depth <= 0:
            return i
    return -1


def add_swift_push_methods(content: str, methods: str) -> str | None:
    lines = content.splitlines(keepends=True)
    cls = find_line(lines, r"\bclass\s+AppDelegate\b")
    if cls < 0:
        return None
    end = _class_closing_line(lines, cls)
    if end < 0:
        return None
    newline = detect_newline(content)
    block = methods.replace("\n", newline)
    lines.insert(end, block if block.endswith(newline) else block + newline)
    patched = "".join(lines)
    return add_import(patched, "import FirebaseMessaging", [r"^import\s+FirebaseCore\b", r"^import\s+Firebase\b"])


def add_objc_push_methods(content: str, methods: str) -> str | None:
    lines = content.splitlines(keepends=True)
    impl = find_line(lines, r"^@implementation\s+AppDelegate\b")
    if impl < 0:
        return None
    end = find_line(lines, r"^@end\b", impl)
    if end < 0:
        return None
    lines.insert(end, methods.replace("\n", detect_newline(content)))
    patched = "".join(lines)
    if "#import <FirebaseMessaging/FirebaseMessaging.h>" in patched:
        return patched
    return add_import(patched, "@import FirebaseMessaging;", [r"^@import\s+FirebaseCore\s*;", r'^#import\s+"AppDelegate\.h"'])


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------


class ApplePlatform(Platform):
    """Shared iOS/macOS behaviour. Subclasses set the per-OS names."""

    config_file_name = GOOGLE_SERVICE_INFO_PLIST
    registry_platform = "ios"
    identifier_kind = "bundle_id"

    base_dir_name = ""  # "ios" / "macos"
    template_dir = ""
    framework_imports: list[str] = []
    adaptor_attribute = ""
    swift_launch_signature = ""
    objc_launch_signature = ""
    info_plists: list[str] = []

    # --- layout ---

    def base_dir(self, root: Path) -> Path:
        base = root / self.base_dir_name
        return base if base.is_dir() else root

    def find_xcodeproj(self, root: Path) -> Path | None:
        base = self.base_dir(root)
        found = probe.find_file(base, "*.xcodeproj")
        if found is None and base != root:
            found = probe.find_file(root, "*.xcodeproj")
        return found

    def project_name(self, root: Path) -> str | None:
        xcodeproj = self.find_xcodeproj(root)
        return xcodeproj.stem if xcodeproj else None

    def config_dir(self, root: Path) -> Path:
        target = self.base_dir(root)
        if (target / "Runner").is_dir():
            target = target / "Runner"
        name = self.project_name(root)
        if name and (target / name).is_dir():
            target = target / name
        return target

    def delegate_dir(self, root: Path) -> Path:
        """Where a generated AppDelegate goes: first existing candidate."""
        name = self.project_name(root)
        candidates: list[Path] = []
        if name:
            candidates += [root / self.base_dir_name / name, root / name]
        candidates.append(root / self.base_dir_name)
        for candidate in candidates:
            if candidate.is_dir():
                return candidate
        return root

    def find_podfile(self, root: Path) -> Path | None:
        for path in (root / "Podfile", root / self.base_dir_name / "Podfile"):
            if path.is_file():
                return path
        return None

    def find_app_delegate(self, root: Path) -> Path | None:
        base = self.base_dir(root)
        return probe.find_file(base, "AppDelegate.swift") or probe.find_file(base, "AppDelegate.m")

    def proxy_disabled(self, root: Path) -> bool:
        """True if an Info.plist sets FirebaseAppDelegateProxyEnabled to false."""
        paths = [root / rel for rel in self.info_plists]
        name = self.project_name(root)
        if name:
            paths += [self.base_dir(root) / name / "Info.plist"]
        for path in paths:
            content = probe.read_text(path) if path.is_file() else None
            if content and _PROXY_DISABLED.search(content):
                return True
        return False

    # --- dialect ---

    def detect_language(self, root: Path) -> Language:
        base = self.base_dir(root)
        if probe.find_file(base, "*.swift"):
            return Language.SWIFT
        if probe.find_file(base, "*.m") or probe.find_file(base, "*.h"):
            return Language.OBJC
        podfile = self.find_podfile(root)
        content = probe.read_text(podfile) if podfile else None
        if content and "use_frameworks!" in content:
            return Language.SWIFT
        return Language.SWIFT

    def find_swiftui_app_file(self, root: Path) -> Path | None:
        """The Swift file declaring the `@main struct ...: App`."""
        for path in probe.find_files(self.base_dir(root), "*.swift", limit=500):
            content = probe.read_text(path)
            if content and "@main" in content and _APP_STRUCT.search(content):
                return path
        return None

    def is_swiftui(self, root: Path) -> bool:
        base = self.base_dir(root)
        app_file = probe.find_file(base, "*App.swift")
        content = probe.read_text(app_file) if app_file else None
        if content and "import SwiftUI" in content and "@main" in content:
            return True
        for path in probe.find_files(base, "*.swift", limit=500):
            content = probe.read_text(path)
            if content and "import SwiftUI" in content:
                return True
        return False

    def detect_dialect(self, root: Path) -> Dialect:
        language = self.detect_language(root)
        if language == Language.SWIFT and self.is_swiftui(root):
            return Dialect(language, Lifecycle.DECLARATIVE)
        return Dialect(language, Lifecycle.LEGACY)

    # --- patches ---

    def _patch_manifest(self, root: Path, report: InjectionReport) -> None:
        podfile = self.find_podfile(root)
        if podfile is not None:
            result = report.add(patch_file(
                podfile, PODS_MARKER, add_pods, "Firebase pods",
                guidance=["Add inside your app target in the Podfile:", *(f"  {p}" for p in FIREBASE_PODS)],
            ))
            if result.changed:
                report.modified_build_files = True
            return

        package_swift = root / "Package.swift"
        if package_swift.is_file():
            result = report.add(patch_file(
                package_swift, SPM_MARKER, add_spm_dependency, "Firebase iOS SDK package",
                guidance=[
                    "Add to Package.swift dependencies:",
                    f"  {SPM_PACKAGE_ENTRY},",
                    "and to your target's dependencies:",
                    f"  {SPM_PRODUCT_ENTRY},",
                ],
            ))
            if result.changed:
                report.modified_build_files = True
            return

        if self.find_xcodeproj(root) is not None:
            report.add(PatchResult(
                None, PatchStatus.ANCHOR_NOT_FOUND, "Firebase iOS SDK package",
                guidance=["No Podfile or Package.swift found. Add the SDK with Swift Package Manager:", *SPM_STEPS],
            ))

    def _create_entry_point(self, root: Path, report: InjectionReport) -> Path | None:
        dialect = self.detect_dialect(root)
        target_dir = self.delegate_dir(root)
        logger.info("no AppDelegate found, generating %s/%s in %s",
                    dialect.language.value, dialect.lifecycle.value, target_dir)

        if dialect.language == Language.OBJC:
            report.add(create_file(
                target_dir / "AppDelegate.h",
                load_template(f"{self.template_dir}/AppDelegate.h"),
                "AppDelegate header",
            ))
            delegate = target_dir / "AppDelegate.m"
            result = report.add(create_file(
                delegate, load_template(f"{self.template_dir}/AppDelegate.m"), "AppDelegate",
            ))
            return delegate if result.ok else None

        delegate = target_dir / "AppDelegate.swift"
        if dialect.lifecycle == Lifecycle.LEGACY:
            result = report.add(create_file(
                delegate, load_template(f"{self.template_dir}/AppDelegate.swift"), "AppDelegate",
            ))
            return delegate if result.ok else None

        result = report.add(create_file(
            delegate, load_template(f"{self.template_dir}/SwiftUIAppDelegate.swift"), "AppDelegate",
        ))
        self._wire_delegate_adaptor(root, target_dir, report)
        return delegate if result.ok else None

    def _wire_delegate_adaptor(self, root: Path, target_dir: Path, report: InjectionReport) -> None:
        adaptor = f"{self.adaptor_attribute}(AppDelegate.self) var delegate"
        app_file = self.find_swiftui_app_file(root)
        if app_file is not None:
            report.add(patch_file(
                app_file, ADAPTOR_MARKER,
                lambda c: add_delegate_adaptor(c, self.adaptor_attribute),
                "App delegate adaptor",
                guidance=[f"Add to your App struct: {adaptor}"],
            ))
            return

        name = swift_type_name(self.project_name(root) or root.resolve().name)
        report.add(create_file(
            target_dir / f"{name}App.swift",
            load_template(f"{self.template_dir}/App.swift", {"APP_NAME": name}),
            "SwiftUI App entry point",
        ))
        report.add(create_file(
            target_dir / "ContentView.swift",
            load_template("ContentView.swift"),
            "ContentView",
        ))

    def _patch_init(self, delegate: Path, report: InjectionReport) -> None:
        if delegate.suffix == ".swift":
            report.add(patch_file(
                delegate, SWIFT_INIT_MARKER,
                lambda c: add_swift_init(c, self.swift_launch_signature, self.framework_imports),
                "Firebase initialization",
                guidance=[
                    "Call FirebaseApp.configure() at the start of your launch callback",
                    "and add `import FirebaseCore`",
                ],
            ))
        else:
            report.add(patch_file(
                delegate, OBJC_INIT_MARKER,
                lambda c: add_objc_init(c, self.objc_launch_signature),
                "Firebase initialization",
                guidance=[
                    "Call [FIRApp configure]; at the start of your launch callback",
                    "and add `@import FirebaseCore;`",
                ],
            ))

    def _patch_push_methods(self, delegate: Path, report: InjectionReport) -> None:
        if delegate.suffix == ".swift":
            methods = load_template(f"{self.template_dir}/PushDelegate.swift")
            transform = partial(add_swift_push_methods, methods=methods)
        else:
            methods = load_template(f"{self.template_dir}/PushDelegate.m")
            transform = partial(add_objc_push_methods, methods=methods)
        report.add(patch_file(
            delegate, PUSH_MARKER, transform,
            "Push notification delegate methods",
            guidance=[
                "FirebaseAppDelegateProxyEnabled is off: forward the APNs token with",
                "Messaging.messaging().apnsToken = deviceToken",
            ],
        ))

    def inject_code(self, root: Path) -> InjectionReport:
        report = InjectionReport()

        self._patch_manifest(root, report)

        delegate = self.find_app_delegate(root)
        if delegate is None:
            delegate = self._create_entry_point(root, report)
        if delegate is None:
            report.manual_steps.append("Create an AppDelegate and call FirebaseApp.configure() at launch")
            return report

        self._patch_init(delegate, report)

        if self.proxy_disabled(root):
            self._patch_push_methods(delegate, report)

        return report

    def sync_dependencies(self, root: Path, report: InjectionReport) -> None:
        changed = report.changed_paths
        podfile = next((p for p in changed if p.name == "Podfile"), None)
        if podfile is not None:
            if not is_available("pod"):
                print_warning("CocoaPods not found. Install it and run 'pod install'")
                report.manual_steps.append(f"Run: cd {podfile.parent} && pod install")
                return
            print_status("Running pod install...")
            ok, output = run_tool(["pod", "install"], podfile.parent)
            if ok:
                print_success("CocoaPods dependencies installed")
                report.manual_steps.append("Open the .xcworkspace in Xcode, not the .xcodeproj")
            else:
                print_warning("pod install failed. Please run it manually")
                logger.debug("pod output: %s", output)
                report.manual_steps.append(f"Run: cd {podfile.parent} && pod install")
            return

        if any(p.name == "Package.swift" for p in changed):
            report.manual_steps.append("Run: swift package resolve")


class IOSPlatform(ApplePlatform):
    name = "iOS"
    key = "ios"
    base_dir_name = "ios"
    template_dir = "ios"
    framework_imports = ["UIKit", "SwiftUI"]
    adaptor_attribute = "@UIApplicationDelegateAdaptor"
    swift_launch_signature = r"didFinishLaunchingWithOptions"
    objc_launch_signature = r"didFinishLaunchingWithOptions\s*:"
    info_plists = ["ios/Runner/Info.plist", "Info.plist", "Runner/Info.plist"]

    def detect(self, root: Path) -> bool:
        return (
            probe.dir_exists(root, "ios")
            or probe.find_file(root, "*.xcodeproj") is not None
            or probe.find_file(root, "*.xcworkspace") is not None
            or probe.file_exists(root, "Podfile")
        )


class MacOSPlatform(ApplePlatform):
    name = "macOS"
    key = "macos"
    base_dir_name = "macos"
    template_dir = "macos"
    framework_imports = ["Cocoa", "AppKit", "SwiftUI"]
    adaptor_attribute = "@NSApplicationDelegateAdaptor"
    swift_launch_signature = r"func\s+applicationDidFinishLaunching\b"
    objc_launch_signature = r"applicationDidFinishLaunching\s*:"
    info_plists = ["macos/Runner/Info.plist", "Info.plist", "Runner/Info.plist"]

    def detect(self, root: Path) -> bool:
        return (
            probe.dir_exists(root, "macos")
            or (probe.find_file(root, "*.xcodeproj") is not None and probe.file_exists(root, "Podfile"))
            or probe.find_file(root, "main.swift") is not None
        )
